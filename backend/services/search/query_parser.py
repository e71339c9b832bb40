"""
Turns a raw user query into FTS5 match expressions.

Handles verbatim (quoted) queries, thesaurus expansion, the AND operator
that splits a query into clauses, and the trigram rewrite used by the
fuzzy fallback.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from core.errors import QuerySyntaxError

# Names that get transcribed interchangeably; each member expands to the whole class
EQUIVALENCE_CLASSES = [
    ("jorge", "george"),
]

THESAURUS: Dict[str, Tuple[str, ...]] = {
    member: cls for cls in EQUIVALENCE_CLASSES for member in cls
}

# Characters the FTS5 query syntax cannot tokenize safely inside a term
UNSAFE_CHARS = re.compile(r'["\'`‘’“”]')

WORD_CHAR = re.compile(r'\w')

AND_OPERATOR = "and"

# A term is a tuple of interchangeable alternatives: ("jorge", "george")
Term = Tuple[str, ...]


@dataclass
class ParsedQuery:
    """Query split into AND clauses of terms."""
    raw: str
    verbatim: bool = False
    clauses: List[List[Term]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(self.clauses)

    @property
    def is_intersection(self) -> bool:
        return len(self.clauses) > 1


def is_verbatim(query: str) -> bool:
    """A query wrapped in one pair of double quotes is matched as a literal phrase."""
    query = query.strip()
    return len(query) >= 2 and query[0] == '"' and query[-1] == '"' and query.count('"') == 2


def sanitize_term(token: str) -> str:
    """Strip quotes, apostrophes and backticks from a token."""
    return UNSAFE_CHARS.sub("", token).strip()


def expand_term(token: str) -> Term:
    """Look a token up in the thesaurus."""
    key = re.sub(r'[^\w]', '', token.lower())
    if key in THESAURUS:
        return THESAURUS[key]
    return (token,)


def parse_query(raw: str) -> ParsedQuery:
    """
    Parse a raw query.

    Whitespace separates terms. A case-insensitive ``AND`` between terms
    starts a new clause; stray leading, trailing or repeated ANDs are
    ignored.
    """
    query = (raw or "").strip()
    if not query:
        return ParsedQuery(raw=raw or "")

    if is_verbatim(query):
        phrase = query[1:-1].strip()
        clauses = [[(phrase,)]] if phrase else []
        return ParsedQuery(raw=raw, verbatim=True, clauses=clauses)

    clauses: List[List[Term]] = [[]]
    for token in query.split():
        if token.lower() == AND_OPERATOR:
            if clauses[-1]:
                clauses.append([])
            continue
        cleaned = sanitize_term(token)
        # Punctuation-only tokens index to nothing and would void the clause
        if WORD_CHAR.search(cleaned):
            clauses[-1].append(expand_term(cleaned))

    return ParsedQuery(raw=raw, clauses=[clause for clause in clauses if clause])


def quote(text: str) -> str:
    """Quote text as an FTS5 string; embedded quotes are doubled."""
    return '"' + text.replace('"', '""') + '"'


def trigrams(text: str) -> List[str]:
    """Distinct overlapping 3-character sequences of ``text``, in order."""
    lowered = text.lower()
    if len(lowered) < 3:
        return [lowered] if lowered else []
    seen = []
    for i in range(len(lowered) - 2):
        gram = lowered[i:i + 3]
        if gram not in seen:
            seen.append(gram)
    return seen


def _alternative_expression(alternative: str, fuzzy: bool) -> str:
    if not fuzzy:
        return quote(alternative)
    # Any shared trigram admits the row; bm25 ranks the closest spellings first
    grams = trigrams(alternative)
    if len(grams) == 1:
        return quote(grams[0])
    return "(" + " OR ".join(quote(gram) for gram in grams) + ")"


def _term_expression(term: Term, fuzzy: bool) -> str:
    parts = [_alternative_expression(alt, fuzzy) for alt in term]
    if len(parts) == 1:
        return parts[0]
    return "(" + " OR ".join(parts) + ")"


def clause_expression(clause: List[Term], fuzzy: bool = False) -> str:
    """Match expression requiring every term of the clause."""
    expression = " AND ".join(_term_expression(term, fuzzy) for term in clause)
    check_balanced(expression)
    return expression


def match_expression(parsed: ParsedQuery, fuzzy: bool = False) -> str:
    """
    Match expression for the whole query.

    Multi-clause queries match a segment that satisfies ANY clause; the
    per-episode AND is enforced separately by the query builder.
    """
    clauses = [clause_expression(clause, fuzzy) for clause in parsed.clauses]
    if len(clauses) == 1:
        return clauses[0]
    return " OR ".join(f"({clause})" for clause in clauses)


def check_balanced(expression: str) -> None:
    """
    Raises:
        QuerySyntaxError: the expression has an odd number of double quotes
    """
    if expression.count('"') % 2:
        raise QuerySyntaxError(f"Unbalanced quotes in {expression!r}")
