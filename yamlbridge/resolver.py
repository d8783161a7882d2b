"""Plain scalar resolution.

Decides what a plain (unquoted, untagged) scalar means: null, bool,
integer, float or string, and the reverse question of whether a string
must be quoted so that it reads back as a string.
"""

import math
import re


NULL_TAG = 'tag:yaml.org,2002:null'
BOOL_TAG = 'tag:yaml.org,2002:bool'
INT_TAG = 'tag:yaml.org,2002:int'
FLOAT_TAG = 'tag:yaml.org,2002:float'
STR_TAG = 'tag:yaml.org,2002:str'

CORE_TAGS = (NULL_TAG, BOOL_TAG, INT_TAG, FLOAT_TAG)

NULL_VALUES = frozenset(['~', 'null', 'Null', 'NULL'])
BOOL_VALUES = {
    'true': True, 'True': True, 'TRUE': True,
    'false': False, 'False': False, 'FALSE': False,
}
INFINITY_VALUES = frozenset(['.inf', '.Inf', '.INF', '+.inf', '+.Inf', '+.INF'])
NEGATIVE_INFINITY_VALUES = frozenset(['-.inf', '-.Inf', '-.INF'])
NAN_VALUES = frozenset(['.nan', '.NaN', '.NAN'])

# Words that some YAML 1.1 readers resolve to something other than a string.
AMBIGUOUS_WORDS = frozenset([
    'y', 'Y', 'yes', 'Yes', 'YES', 'n', 'N', 'no', 'No', 'NO',
    'true', 'True', 'TRUE', 'false', 'False', 'FALSE',
    'on', 'On', 'ON', 'off', 'Off', 'OFF',
    'null', 'Null', 'NULL', 'nil', 'Nil', 'NIL', '~',
    'nan', 'NaN', 'NAN',
])

_HEX_RE = re.compile(r'^[-+]?0x[0-9a-fA-F]+$')
_OCT_RE = re.compile(r'^[-+]?0o[0-7]+$')
_BIN_RE = re.compile(r'^[-+]?0b[01]+$')
_DEC_RE = re.compile(r'^[-+]?[0-9]+$')
_FLOAT_RE = re.compile(r'^[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?$')


def parse_null(value):
    """Return True if the scalar text denotes null."""
    return value == '' or value in NULL_VALUES


def parse_bool(value):
    """Return True/False for boolean scalar text, None otherwise."""
    return BOOL_VALUES.get(value)


def digits_but_not_number(value):
    """Digit strings with a redundant leading zero, like ``01``, stay strings."""
    digits = value[1:] if value[:1] in ('-', '+') else value
    return len(digits) > 1 and digits.startswith('0') and digits.isdigit()


def parse_int(value):
    """Parse integer scalar text, returning None when it is not one.

    Decimal, ``0x``, ``0o`` and ``0b`` forms are accepted, each with an
    optional sign.
    """
    for regexp, base in ((_HEX_RE, 16), (_OCT_RE, 8), (_BIN_RE, 2)):
        if regexp.match(value):
            negative = value.startswith('-')
            digits = value.lstrip('+-')[2:]
            number = int(digits, base)
            return -number if negative else number
    if _DEC_RE.match(value) and not digits_but_not_number(value):
        return int(value)
    return None


def parse_float(value):
    """Parse float scalar text, returning None when it is not one."""
    if value in INFINITY_VALUES:
        return math.inf
    if value in NEGATIVE_INFINITY_VALUES:
        return -math.inf
    if value in NAN_VALUES:
        return math.nan
    if _FLOAT_RE.match(value):
        return float(value)
    return None


def resolve(value):
    """Resolve plain scalar text to a Python null, bool, int, float or str."""
    if parse_null(value):
        return None
    boolean = parse_bool(value)
    if boolean is not None:
        return boolean
    number = parse_int(value)
    if number is not None:
        return number
    if not digits_but_not_number(value):
        number = parse_float(value)
        if number is not None:
            return number
    return value


def ambiguous_string(value):
    """Return True if value needs quoting to be read back as a string."""
    if not value or value in AMBIGUOUS_WORDS:
        return True
    if value[0] in '0123456789-+.':
        return True
    return not isinstance(resolve(value), str)


def format_float(value):
    """Render a float the shortest way that reads back as the same float."""
    if math.isnan(value):
        return '.nan'
    if math.isinf(value):
        return '.inf' if value > 0 else '-.inf'
    text = repr(value)
    if '.' not in text and 'e' not in text:
        text += '.0'
    return text
