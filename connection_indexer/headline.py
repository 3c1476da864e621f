"""
Headline Parser - Split a free-text occupation line into title and employer.
"""

from typing import NamedTuple

from connection_indexer import config

# Most specific first. The first separator in this list that occurs wins,
# regardless of where it sits in the headline.
HEADLINE_SEPARATORS = [" at ", " @ ", " | ", " - "]
COMMA_SEPARATOR = ", "


class ParsedHeadline(NamedTuple):
    title: str
    company: str


def parse_headline(headline: str, include_comma: bool | None = None) -> ParsedHeadline:
    """
    Split a headline on the highest-priority separator it contains.

    "Senior Engineer at Acme Corp" -> ("Senior Engineer", "Acme Corp")
    "Engineer, Data | Acme"        -> ("Engineer, Data", "Acme")
    "Freelancer"                   -> ("Freelancer", "")

    When the separator appears more than once, everything after the first
    occurrence is the company, re-joined with that separator.
    """
    if not headline:
        return ParsedHeadline("", "")

    if include_comma is None:
        include_comma = config.HEADLINE_SPLIT_ON_COMMA
    separators = HEADLINE_SEPARATORS + [COMMA_SEPARATOR] if include_comma else HEADLINE_SEPARATORS

    for sep in separators:
        if sep in headline:
            title, *rest = headline.split(sep)
            return ParsedHeadline(title.strip(), sep.join(rest).strip())

    return ParsedHeadline(headline, "")
