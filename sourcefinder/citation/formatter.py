"""Plain-text citation rendering for the supported style templates.

The formatter is a pluggable collaborator: anything implementing
``CitationFormatter.format(entry, style)`` can replace the built-in one.
"""

import logging
from datetime import date
from typing import Callable, Protocol

from pydantic import BaseModel

from sourcefinder.citation.csl import CitationEntry
from sourcefinder.core.errors import RenderError
from sourcefinder.core.styles import Style
from sourcefinder.search.models import Author

logger = logging.getLogger(__name__)

# Sequential numbering needs whole-document context; suggestions get a fixed marker
NUMERIC_PLACEHOLDER = "[1]"

MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


class FormattedCitation(BaseModel):
    style: str
    style_label: str
    in_text: str
    bibliography: str


class CitationFormatter(Protocol):
    def format(self, entry: CitationEntry, style: Style) -> FormattedCitation: ...


# ── Name Helpers ─────────────────────────────────────────────────────


def _surname(author: Author) -> str:
    return author.family or author.literal or ""


def _initials(given: str | None, sep: str = " ", dot: str = ".") -> str:
    parts = [p for p in (given or "").replace("-", " ").split() if p]
    return sep.join(f"{p[0].upper()}{dot}" for p in parts)


def _inverted(author: Author) -> str:
    """Doe, Jane"""
    if author.literal:
        return author.literal
    return f"{author.family}, {author.given}" if author.given else author.family or ""


def _inverted_initials(author: Author) -> str:
    """Doe, J. Q."""
    if author.literal:
        return author.literal
    initials = _initials(author.given)
    return f"{author.family}, {initials}" if initials else author.family or ""


def _initials_first(author: Author) -> str:
    """J. Q. Doe"""
    if author.literal:
        return author.literal
    initials = _initials(author.given)
    return f"{initials} {author.family}" if initials else author.family or ""


def _vancouver_name(author: Author) -> str:
    """Doe JQ"""
    if author.literal:
        return author.literal
    initials = _initials(author.given, sep="", dot="")
    return f"{author.family} {initials}" if initials else author.family or ""


def _join(names: list[str], conjunction: str = "and", serial_comma: bool = True) -> str:
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        if conjunction == "&":
            return f"{names[0]}, & {names[1]}"
        return f"{names[0]} {conjunction} {names[1]}"
    comma = "," if serial_comma else ""
    return ", ".join(names[:-1]) + f"{comma} {conjunction} {names[-1]}"


# ── Entry Helpers ────────────────────────────────────────────────────


def _year(entry: CitationEntry) -> str:
    year = entry.issued.year if entry.issued else None
    return str(year) if year else "n.d."


def _accessed(entry: CitationEntry) -> str:
    parts = entry.accessed.date_parts[0] if entry.accessed.date_parts else []
    if len(parts) >= 3:
        return f"{parts[2]} {MONTHS[parts[1] - 1]} {parts[0]}"
    return date.today().strftime("%d %B %Y")


def _doi_url(entry: CitationEntry) -> str:
    return f"https://doi.org/{entry.doi}" if entry.doi else entry.url


def _terminate(text: str) -> str:
    text = text.rstrip()
    return text if text.endswith((".", "?", "!")) else text + "."


def _short_title(entry: CitationEntry, words: int = 4) -> str:
    tokens = entry.title.split()
    short = " ".join(tokens[:words])
    return short + ("…" if len(tokens) > words else "")


def _is_web(entry: CitationEntry) -> bool:
    return entry.type == "webpage"


# ── Bibliography by Template ─────────────────────────────────────────


def _apa(entry: CitationEntry) -> str:
    names = [_inverted_initials(a) for a in entry.author]
    if len(names) > 20:
        authors = ", ".join(names[:19]) + f", . . . {names[-1]}"
    else:
        authors = _join(names, "&")
    title = _terminate(entry.title)
    head = f"{authors} ({_year(entry)}). {title}" if authors else f"{title} ({_year(entry)})."
    parts = [head]
    if entry.container_title:
        parts.append(_terminate(entry.container_title))
    link = _doi_url(entry)
    if link:
        parts.append(link)
    return " ".join(parts)


def _mla(entry: CitationEntry) -> str:
    if len(entry.author) >= 3:
        authors = f"{_inverted(entry.author[0])}, et al"
    elif len(entry.author) == 2:
        authors = f"{_inverted(entry.author[0])}, and {entry.author[1].display_name}"
    elif entry.author:
        authors = _inverted(entry.author[0])
    else:
        authors = ""
    parts = [_terminate(authors)] if authors else []
    parts.append(f'"{_terminate(entry.title)}"')
    details = [entry.container_title or "", _year(entry) if entry.issued else "", _doi_url(entry)]
    details = [d for d in details if d]
    if details:
        parts.append(_terminate(", ".join(details)))
    if _is_web(entry):
        parts.append(f"Accessed {_accessed(entry)}.")
    return " ".join(parts)


def _chicago(entry: CitationEntry) -> str:
    names = [
        _inverted(a) if i == 0 else a.display_name
        for i, a in enumerate(entry.author)
    ]
    authors = _join(names)
    parts = []
    if authors:
        parts.append(f"{_terminate(authors)} {_year(entry)}.")
        parts.append(f'"{_terminate(entry.title)}"')
    else:
        parts.append(f'"{_terminate(entry.title)}" {_year(entry)}.')
    if entry.container_title:
        parts.append(_terminate(entry.container_title))
    link = _doi_url(entry)
    if link:
        parts.append(_terminate(link))
    return " ".join(parts)


def _harvard(entry: CitationEntry) -> str:
    authors = _join([_inverted_initials(a) for a in entry.author], serial_comma=False)
    lead = f"{authors} ({_year(entry)})" if authors else f"{entry.title} ({_year(entry)})"
    text = f"{lead} '{entry.title}'" if authors else lead
    if entry.container_title:
        text += f", {entry.container_title}"
    text = _terminate(text)
    if entry.doi:
        text += f" doi: {entry.doi}."
    if entry.url:
        text += f" Available at: {entry.url} (Accessed: {_accessed(entry)})."
    return text


def _ieee(entry: CitationEntry) -> str:
    authors = _join([_initials_first(a) for a in entry.author])
    text = f'{authors}, "{entry.title},"' if authors else f'"{entry.title},"'
    if entry.container_title:
        text += f" {entry.container_title},"
    text += f" {_year(entry)}"
    if entry.doi:
        text += f", doi: {entry.doi}."
    else:
        text += "."
        if entry.url:
            text += f" [Online]. Available: {entry.url}"
    return f"{NUMERIC_PLACEHOLDER} {text}"


def _vancouver(entry: CitationEntry) -> str:
    names = [_vancouver_name(a) for a in entry.author]
    if len(names) > 6:
        names = names[:6] + ["et al"]
    parts = []
    if names:
        parts.append(_terminate(", ".join(names)))
    parts.append(_terminate(entry.title))
    if entry.container_title:
        parts.append(_terminate(entry.container_title))
    parts.append(f"{_year(entry)}.")
    if entry.doi:
        parts.append(f"doi:{entry.doi}")
    elif entry.url:
        parts.append(f"Available from: {entry.url}")
    return f"1. {' '.join(parts)}"


# ── In-Text ──────────────────────────────────────────────────────────


def _in_text_names(entry: CitationEntry, pair: str, et_al_from: int = 3) -> str:
    surnames = [_surname(a) for a in entry.author if _surname(a)]
    if not surnames:
        return f'"{_short_title(entry)}"'
    if len(surnames) >= et_al_from:
        return f"{surnames[0]} et al."
    if len(surnames) == 2:
        return f"{surnames[0]} {pair} {surnames[1]}"
    return surnames[0]


def _in_text_apa(entry: CitationEntry) -> str:
    return f"({_in_text_names(entry, '&')}, {_year(entry)})"


def _in_text_mla(entry: CitationEntry) -> str:
    return f"({_in_text_names(entry, 'and')})"


def _in_text_author_date(entry: CitationEntry) -> str:
    return f"({_in_text_names(entry, 'and')} {_year(entry)})"


def _in_text_numeric(entry: CitationEntry) -> str:
    return NUMERIC_PLACEHOLDER


# template -> (bibliography renderer, in-text renderer)
TEMPLATES: dict[str, tuple[Callable[[CitationEntry], str], Callable[[CitationEntry], str]]] = {
    "apa": (_apa, _in_text_apa),
    "mla": (_mla, _in_text_mla),
    "chicago-author-date": (_chicago, _in_text_author_date),
    "harvard1": (_harvard, _in_text_author_date),
    "ieee": (_ieee, _in_text_numeric),
    "vancouver": (_vancouver, _in_text_numeric),
}


# ── Formatter ────────────────────────────────────────────────────────


class TextCitationFormatter:
    """Renders in-text and bibliography strings for one entry at a time."""

    def format(self, entry: CitationEntry, style: Style) -> FormattedCitation:
        renderers = TEMPLATES.get(style.template)
        if renderers is None:
            raise RenderError(f"No renderer for style template '{style.template}'")
        if not entry.title.strip():
            raise RenderError(f"Citation entry '{entry.id}' has no title")

        bibliography_fn, in_text_fn = renderers
        in_text = NUMERIC_PLACEHOLDER if style.numeric else in_text_fn(entry)

        return FormattedCitation(
            style=style.id,
            style_label=style.label,
            in_text=in_text,
            bibliography=" ".join(bibliography_fn(entry).split()),
        )
