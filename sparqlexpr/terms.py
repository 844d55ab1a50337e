"""RDF term model over the string term encoding.

Terms travel through the evaluator as plain strings:
- IRIs: the bare IRI text (``<...>`` wrapped IRIs are accepted on input)
- Blank nodes: ``_:label``
- Literals: ``"lex"``, ``"lex"@tag`` or ``"lex"^^<datatype>``

Datatypes are absolute IRIs, written with or without angle brackets.
Prefixed names are not expanded: ``"5"^^xsd:integer`` carries the datatype
IRI ``xsd:integer``, which is not numeric. ``canonical_term`` brings the
accepted spellings of a term to the one form this module writes.

This module classifies and builds such strings, and encodes the argument
compatibility and effective boolean value rules used by the operators.
"""

import math
import re
from typing import Optional

from rdflib import BNode, Literal, RDF, URIRef, XSD

from sparqlexpr.errors import InvalidArgument


# =============================================================================
# Constants
# =============================================================================

XSD_STRING = str(XSD.string)
XSD_INTEGER = str(XSD.integer)
XSD_DOUBLE = str(XSD.double)
XSD_BOOLEAN = str(XSD.boolean)
RDF_LANG_STRING = str(RDF.langString)

TRUE = f'"true"^^<{XSD_BOOLEAN}>'
FALSE = f'"false"^^<{XSD_BOOLEAN}>'

NUMERIC_TYPES = frozenset(
    str(t)
    for t in (
        XSD.integer,
        XSD.decimal,
        XSD.float,
        XSD.double,
        XSD.nonPositiveInteger,
        XSD.negativeInteger,
        XSD.long,
        XSD.int,
        XSD.short,
        XSD.byte,
        XSD.nonNegativeInteger,
        XSD.unsignedLong,
        XSD.unsignedInt,
        XSD.unsignedShort,
        XSD.unsignedByte,
        XSD.positiveInteger,
    )
)

# Leading numeric prefix, read the way a lenient float parser does
_NUMBER_PREFIX = re.compile(
    r"\s*([+-]?(?:Infinity|INF|NaN|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


# =============================================================================
# Classification
# =============================================================================


def is_literal(term) -> bool:
    return isinstance(term, str) and term.startswith('"') and term.rfind('"') > 0


def is_blank(term) -> bool:
    return isinstance(term, str) and term.startswith("_:")


def is_iri(term) -> bool:
    """True for IRIs, bare or wrapped in angle brackets."""
    if not isinstance(term, str) or not term:
        return False
    return not (is_literal(term) or is_blank(term) or term.startswith("?"))


is_uri = is_iri


def iri_text(term: str) -> str:
    """Strip the angle brackets from a wrapped IRI."""
    if term.startswith("<") and term.endswith(">"):
        return term[1:-1]
    return term


# =============================================================================
# Literal Components
# =============================================================================


def _split_literal(term: str) -> tuple[str, str]:
    """Split a literal into its lexical form and the suffix after the quotes."""
    if not is_literal(term):
        raise InvalidArgument("literal", f"expected a literal but got: {term}")
    end = term.rfind('"')
    return term[1:end], term[end + 1 :]


def get_literal_value(term: str) -> str:
    return _split_literal(term)[0]


def get_literal_language(term: str) -> str:
    """Return the lower-cased language tag, or "" if there is none."""
    suffix = _split_literal(term)[1]
    return suffix[1:].lower() if suffix.startswith("@") else ""


def explicit_datatype(term: str) -> Optional[str]:
    """Return the datatype written on the literal, or None if it has none."""
    suffix = _split_literal(term)[1]
    if suffix.startswith("^^"):
        return iri_text(suffix[2:])
    return None


def get_literal_type(term: str) -> str:
    """Return the datatype IRI of a literal.

    Simple literals are xsd:string and language-tagged literals are
    rdf:langString, as in RDF 1.1.
    """
    suffix = _split_literal(term)[1]
    if suffix.startswith("^^"):
        return iri_text(suffix[2:])
    if suffix.startswith("@"):
        return RDF_LANG_STRING
    return XSD_STRING


def is_simple_or_plain_literal(term) -> bool:
    """True for a literal without language tag whose datatype is absent or xsd:string."""
    if not is_literal(term) or get_literal_language(term):
        return False
    return explicit_datatype(term) in (None, XSD_STRING)


def is_numeric_literal(term) -> bool:
    return is_literal(term) and get_literal_type(term) in NUMERIC_TYPES


# =============================================================================
# Construction
# =============================================================================


def simple_literal(lexical_form: str) -> str:
    return f'"{lexical_form}"'


def typed_literal(lexical_form: str, datatype: str) -> str:
    return f'"{lexical_form}"^^<{iri_text(datatype)}>'


def language_literal(lexical_form: str, language: str) -> str:
    return f'"{lexical_form}"@{language}'


def boolean_literal(flag) -> str:
    return TRUE if flag else FALSE


def numeric_literal(number, datatype: str = XSD_INTEGER) -> str:
    return typed_literal(format_number(number), datatype)


def construct_literal(lexical_form: str, source: str) -> str:
    """Build a literal of the same kind as ``source``.

    The language tag of the source wins, then its explicit datatype;
    otherwise the result is a simple literal.
    """
    language = get_literal_language(source)
    if language:
        return language_literal(lexical_form, language)
    datatype = explicit_datatype(source)
    if datatype:
        return typed_literal(lexical_form, datatype)
    return simple_literal(lexical_form)


def canonical_term(term):
    """Rewrite a term in the form this module produces.

    Datatypes get angle brackets, language tags are lower-cased and
    wrapped IRIs lose their brackets. Other values are returned unchanged.
    """
    if is_literal(term):
        language = get_literal_language(term)
        if language:
            return language_literal(get_literal_value(term), language)
        datatype = explicit_datatype(term)
        if datatype:
            return typed_literal(get_literal_value(term), datatype)
        return term
    if is_iri(term):
        return iri_text(term)
    return term


def term_from_rdflib(node) -> str:
    """Encode an rdflib term in the string term encoding."""
    if isinstance(node, Literal):
        if node.language:
            return language_literal(str(node), node.language)
        if node.datatype:
            return typed_literal(str(node), str(node.datatype))
        return simple_literal(str(node))
    if isinstance(node, BNode):
        return f"_:{node}"
    if isinstance(node, URIRef):
        return str(node)
    raise InvalidArgument("term", f"not an RDF term: {node!r}")


# =============================================================================
# Argument Compatibility and Effective Boolean Value
# =============================================================================


def compatible_arguments(arg1, arg2) -> bool:
    """Check the SPARQL 17.4.3.1.2 argument compatibility rules.

    Both arguments must be literals, and either both carry no language tag
    or both carry the same one.
    """
    if not is_literal(arg1) or not is_literal(arg2):
        return False
    return get_literal_language(arg1) == get_literal_language(arg2)


def effective_boolean_value(term) -> bool:
    """Boolean interpretation of a term for the logical operators.

    A term is false iff it is the false boolean literal or a literal whose
    lexical value is exactly "0". Everything else, IRIs included, is true.
    Empty strings and NaN therefore count as true, unlike SPARQL 17.2.2.
    """
    if term == FALSE:
        return False
    if not is_literal(term):
        return True
    value = get_literal_value(term)
    if value == "0":
        return False
    return not (value == "false" and get_literal_type(term) == XSD_BOOLEAN)


# =============================================================================
# Numbers
# =============================================================================


def parse_number(term, operator: str = "number") -> float:
    """Parse the lexical value of a literal as a float.

    Only the leading numeric prefix is read; a value without one gives NaN.
    IRIs and blank nodes have no numeric value and raise InvalidArgument
    on behalf of ``operator``.
    """
    if not is_literal(term):
        raise InvalidArgument(operator, f"expects a numeric literal but got: {term}")
    match = _NUMBER_PREFIX.match(get_literal_value(term))
    if match is None:
        return math.nan
    text = match.group(1)
    sign = -1.0 if text.startswith("-") else 1.0
    if text.lstrip("+-") in ("Infinity", "INF"):
        return sign * math.inf
    if text.lstrip("+-") == "NaN":
        return math.nan
    return float(text)


def format_number(number) -> str:
    """Lexical form of a number; integral values print without a fraction."""
    if isinstance(number, bool):
        return "1" if number else "0"
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "INF" if number > 0 else "-INF"
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)
