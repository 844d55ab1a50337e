"""The fixed catalogue of SPARQL operators and functions.

Implementations receive already-coerced arguments (see ``Coercion``), except
raw-expression operators, which receive the bindings followed by deferred
argument expressions and decide themselves what to evaluate. Raw-expression
operators return their final term.

Operators the language defines but this evaluator does not implement are
declared as stubs and raise ``UnsupportedOperator`` when evaluated.
"""

import math
import random
import re
import uuid

from rdflib import XSD

from sparqlexpr.errors import (
    EVALUATION_ERRORS,
    ArgumentCompatibilityViolation,
    InvalidArgument,
)
from sparqlexpr.expression import Variable
from sparqlexpr.registry import Coercion, RegistryBuilder
from sparqlexpr.terms import (
    XSD_DOUBLE,
    XSD_INTEGER,
    boolean_literal,
    canonical_term,
    compatible_arguments,
    construct_literal,
    effective_boolean_value,
    format_number,
    get_literal_language,
    get_literal_type,
    get_literal_value,
    iri_text,
    is_blank,
    is_iri,
    is_literal,
    is_numeric_literal,
    is_simple_or_plain_literal,
    language_literal,
    numeric_literal,
    parse_number,
    simple_literal,
    typed_literal,
)

_builder = RegistryBuilder()
operator = _builder.operator

NUMERIC = Coercion.NUMERIC
BOOLEAN = Coercion.BOOLEAN

# Thread-safe sources for RAND, UUID and STRUUID
_random = random.SystemRandom().random
_uuid4 = uuid.uuid4

# Supported SPARQL REGEX flags (XPath fn:matches)
_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "q": 0,
}


def _lexical(name: str, term) -> str:
    """Lexical value of a literal argument; other terms are an error."""
    if not is_literal(term):
        raise InvalidArgument(name, f"expects a literal but got: {term}")
    return get_literal_value(term)


def _compatible_values(name: str, arg1, arg2) -> tuple[str, str]:
    if not compatible_arguments(arg1, arg2):
        raise ArgumentCompatibilityViolation(name, arg1, arg2)
    return get_literal_value(arg1), get_literal_value(arg2)


def _round_half_up(number: float) -> float:
    if not math.isfinite(number):
        return number
    return float(math.floor(number + 0.5))


# =============================================================================
# 17.4.1 Functional Forms
# =============================================================================


@operator("+", argument=NUMERIC, result=NUMERIC)
def _add(a, b):
    return a + b


@operator("-", argument=NUMERIC, result=NUMERIC)
def _subtract(a, b):
    return a - b


@operator("*", argument=NUMERIC, result=NUMERIC)
def _multiply(a, b):
    return a * b


@operator("/", argument=NUMERIC, result=NUMERIC)
def _divide(a, b):
    if b == 0:
        # IEEE 754 division: x/0 is a signed infinity, 0/0 is NaN
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


@operator("=", result=BOOLEAN)
def _equal(a, b):
    return canonical_term(a) == canonical_term(b)


@operator("!=", result=BOOLEAN)
def _not_equal(a, b):
    return canonical_term(a) != canonical_term(b)


@operator("<", argument=NUMERIC, result=BOOLEAN)
def _less(a, b):
    return a < b


@operator("<=", argument=NUMERIC, result=BOOLEAN)
def _less_equal(a, b):
    return a <= b


@operator(">", argument=NUMERIC, result=BOOLEAN)
def _greater(a, b):
    return a > b


@operator(">=", argument=NUMERIC, result=BOOLEAN)
def _greater_equal(a, b):
    return a >= b


@operator("!", argument=BOOLEAN, result=BOOLEAN)
def _not(a):
    return not a


@operator("&&", argument=BOOLEAN, result=BOOLEAN)
def _and(a, b):
    return a and b


@operator("||", argument=BOOLEAN, result=BOOLEAN)
def _or(a, b):
    return a or b


@operator("bound", raw=True)
def _bound(bindings, variable):
    """BOUND(?var) - true if the variable has a value in the bindings."""
    expression = variable.expression
    if not isinstance(expression, Variable):
        raise InvalidArgument("bound", f"expects a variable but got: {expression}")
    bound = bindings is not None and bindings.get(expression.name) is not None
    return boolean_literal(bound)


@operator("if", raw=True)
def _if(bindings, condition, then, otherwise):
    """IF(condition, then, else) - only the chosen branch is evaluated."""
    if effective_boolean_value(condition.evaluate(bindings)):
        return then.evaluate(bindings)
    return otherwise.evaluate(bindings)


@operator("coalesce", raw=True)
def _coalesce(bindings, *expressions):
    """COALESCE(expr, ...) - the first argument that evaluates without error."""
    for expression in expressions:
        try:
            return expression.evaluate(bindings)
        except EVALUATION_ERRORS:
            continue
    raise InvalidArgument("coalesce", "no argument could be evaluated")


@operator("sameterm", result=BOOLEAN)
def _same_term(a, b):
    return canonical_term(a) == canonical_term(b)


_builder.unsupported("exists", "not exists")
_builder.unsupported("in", "not in", arity=1, max_arity=None)


# =============================================================================
# 17.4.2 Functions on RDF Terms
# =============================================================================


@operator("isiri", "isuri", result=BOOLEAN)
def _is_iri(term):
    return is_iri(term)


@operator("isblank", result=BOOLEAN)
def _is_blank(term):
    return is_blank(term)


@operator("isliteral", result=BOOLEAN)
def _is_literal(term):
    return is_literal(term)


@operator("isnumeric", result=BOOLEAN)
def _is_numeric(term):
    return is_numeric_literal(term)


@operator("str")
def _str(term):
    """STR(term) - simple literal of the lexical form or the IRI text."""
    if is_literal(term):
        return simple_literal(get_literal_value(term))
    if is_iri(term):
        return simple_literal(iri_text(term))
    raise InvalidArgument("str", f"expects a literal or IRI but got: {term}")


@operator("lang")
def _lang(term):
    """LANG(literal) - the language tag, or "" if there is none."""
    _lexical("lang", term)
    return simple_literal(get_literal_language(term))


@operator("datatype")
def _datatype(term):
    _lexical("datatype", term)
    return get_literal_type(term)


@operator("iri", "uri")
def _iri(term):
    if is_iri(term):
        return iri_text(term)
    if is_simple_or_plain_literal(term):
        return get_literal_value(term)
    raise InvalidArgument("iri", "expects a simple literal, xsd:string or an IRI")


@operator("strdt")
def _strdt(lexical_form, datatype):
    if not is_simple_or_plain_literal(lexical_form):
        raise InvalidArgument(
            "strdt", f"expects a simple literal but got: {lexical_form}"
        )
    if not is_iri(datatype):
        raise InvalidArgument("strdt", f"expects a datatype IRI but got: {datatype}")
    return typed_literal(get_literal_value(lexical_form), iri_text(datatype))


@operator("strlang")
def _strlang(lexical_form, language):
    if not is_simple_or_plain_literal(lexical_form):
        raise InvalidArgument(
            "strlang", f"expects a simple literal but got: {lexical_form}"
        )
    tag = _lexical("strlang", language)
    if not tag:
        raise InvalidArgument("strlang", "language tag must not be empty")
    return language_literal(get_literal_value(lexical_form), tag)


@operator("uuid")
def _uuid():
    return f"urn:uuid:{_uuid4()}"


@operator("struuid")
def _struuid():
    return simple_literal(str(_uuid4()))


_builder.unsupported("bnode", arity=0, max_arity=1)


# =============================================================================
# 17.4.3 Functions on Strings
# =============================================================================


@operator("strlen")
def _strlen(string):
    return numeric_literal(len(_lexical("strlen", string)), XSD_INTEGER)


@operator("substr")
def _substr(string, start, length=None):
    """SUBSTR(string, start [, length]) - positions are 1-based."""
    value = _lexical("substr", string)
    first = _round_half_up(parse_number(start, "substr"))
    if length is None:
        last = math.inf
    else:
        last = first + _round_half_up(parse_number(length, "substr"))
    lexical_form = "".join(
        char for position, char in enumerate(value, 1) if first <= position < last
    )
    return construct_literal(lexical_form, string)


@operator("ucase")
def _ucase(string):
    return construct_literal(_lexical("ucase", string).upper(), string)


@operator("lcase")
def _lcase(string):
    return construct_literal(_lexical("lcase", string).lower(), string)


@operator("strstarts", result=BOOLEAN)
def _strstarts(arg1, arg2):
    value, prefix = _compatible_values("strstarts", arg1, arg2)
    return value.startswith(prefix)


@operator("strends", result=BOOLEAN)
def _strends(arg1, arg2):
    value, suffix = _compatible_values("strends", arg1, arg2)
    return value.endswith(suffix)


@operator("contains", result=BOOLEAN)
def _contains(arg1, arg2):
    value, fragment = _compatible_values("contains", arg1, arg2)
    return fragment in value


@operator("strbefore")
def _strbefore(arg1, arg2):
    value, fragment = _compatible_values("strbefore", arg1, arg2)
    index = value.find(fragment)
    if index < 0:
        return simple_literal("")
    return construct_literal(value[:index], arg1)


@operator("strafter")
def _strafter(arg1, arg2):
    value, fragment = _compatible_values("strafter", arg1, arg2)
    index = value.find(fragment)
    if index < 0:
        return simple_literal("")
    return construct_literal(value[index + len(fragment) :], arg1)


@operator("concat")
def _concat(*strings):
    """CONCAT(str, ...) - takes the kind of its first argument."""
    if not strings:
        return simple_literal("")
    lexical_form = "".join(_lexical("concat", s) for s in strings)
    return construct_literal(lexical_form, strings[0])


@operator("langmatches", result=BOOLEAN)
def _langmatches(language_tag, language_range):
    """LANGMATCHES(tag, range) - BCP 47 basic filtering."""
    tag = _lexical("langmatches", language_tag).lower()
    range_ = _lexical("langmatches", language_range).lower()
    if range_ == "*":
        return tag != ""
    return tag == range_ or tag.startswith(range_ + "-")


@operator("regex", result=BOOLEAN)
def _regex(text, pattern, flags=None):
    """REGEX(text, pattern [, flags])."""
    subject = get_literal_value(text) if is_literal(text) else iri_text(text)
    expression = _lexical("regex", pattern)
    flag_text = _lexical("regex", flags) if flags is not None else ""

    invalid_flags = set(flag_text) - set(_REGEX_FLAGS)
    if invalid_flags:
        raise InvalidArgument("regex", f"unsupported flags: {sorted(invalid_flags)}")

    # 'q' matches the pattern literally
    if "q" in flag_text:
        expression = re.escape(expression)
    re_flags = 0
    for flag in flag_text:
        re_flags |= _REGEX_FLAGS[flag]

    try:
        return re.search(expression, subject, re_flags) is not None
    except re.error as e:
        raise InvalidArgument("regex", f"invalid pattern {expression!r}: {e}") from e


_builder.unsupported("encode_for_uri")
_builder.unsupported("replace", arity=3, max_arity=4)


# =============================================================================
# 17.4.4 Functions on Numerics
# =============================================================================


@operator("abs", argument=NUMERIC, result=NUMERIC)
def _abs(number):
    return abs(number)


@operator("round", argument=NUMERIC, result=NUMERIC)
def _round(number):
    return _round_half_up(number)


@operator("ceil", argument=NUMERIC, result=NUMERIC)
def _ceil(number):
    return float(math.ceil(number)) if math.isfinite(number) else number


@operator("floor", argument=NUMERIC, result=NUMERIC)
def _floor(number):
    return float(math.floor(number)) if math.isfinite(number) else number


@operator("rand")
def _rand():
    return typed_literal(format_number(_random()), XSD_DOUBLE)


# =============================================================================
# 17.4.5 Functions on Dates and Times / 17.4.6 Hash Functions
# =============================================================================

_builder.unsupported("now", arity=0)
_builder.unsupported(
    "year", "month", "day", "hours", "minutes", "seconds", "timezone", "tz"
)
_builder.unsupported("md5", "sha1", "sha256", "sha384", "sha512")


# =============================================================================
# 17.5 XPath Constructor Functions
# =============================================================================


@operator(XSD_DOUBLE, argument=NUMERIC)
def _to_double(number):
    lexical_form = format_number(number)
    if math.isfinite(number) and not any(c in lexical_form for c in ".e"):
        lexical_form += ".0"
    return typed_literal(lexical_form, XSD_DOUBLE)


_builder.unsupported(
    str(XSD.integer),
    str(XSD.decimal),
    str(XSD.float),
    str(XSD.string),
    str(XSD.boolean),
    str(XSD.dateTime),
)


DEFAULT_REGISTRY = _builder.build()
