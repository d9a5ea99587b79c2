"""Citation style descriptors and alias resolution."""

from pydantic import BaseModel

from sourcefinder.core.errors import ValidationError


class Style(BaseModel):
    """A citation style the formatter knows how to render."""

    id: str
    template: str
    label: str
    numeric: bool = False


DEFAULT_STYLES: list[Style] = [
    Style(id="apa", template="apa", label="APA (7th Edition)"),
    Style(id="mla", template="mla", label="MLA (9th Edition)"),
    Style(id="chicago", template="chicago-author-date", label="Chicago (Author-Date)"),
    Style(id="ieee", template="ieee", label="IEEE", numeric=True),
    Style(id="harvard", template="harvard1", label="Harvard"),
    Style(id="vancouver", template="vancouver", label="Vancouver", numeric=True),
]

DEFAULT_STYLE_ALIASES: dict[str, str] = {
    "apa": "apa",
    "mla": "mla",
    "chicago": "chicago",
    "chicago-author-date": "chicago",
    "ieee": "ieee",
    "harvard": "harvard",
    "harvard1": "harvard",
    "vancouver": "vancouver",
}


class StyleRegistry:
    """Closed set of styles plus the alias table used to resolve user input."""

    def __init__(
        self,
        styles: list[Style],
        aliases: dict[str, str],
        default_style: str = "apa",
    ):
        self._styles = {s.id: s for s in styles}
        self._order = [s.id for s in styles]
        self._aliases = {k.strip().lower(): v for k, v in aliases.items()}
        # Every style is reachable by its own id
        for style_id in self._order:
            self._aliases.setdefault(style_id, style_id)
        unknown = sorted(set(self._aliases.values()) - set(self._styles))
        if unknown:
            raise ValueError(f"Style aliases point at unknown styles: {', '.join(unknown)}")
        if default_style.strip().lower() not in self._aliases:
            raise ValueError(f"Default style '{default_style}' is not a known style")
        self.default_style = default_style

    def resolve(self, value: str | None) -> Style:
        requested = (value or "").strip().lower() or self.default_style.strip().lower()
        style_id = self._aliases.get(requested)
        if style_id is None:
            valid = ", ".join(self._order)
            raise ValidationError(f'Unsupported style "{value}". Try one of: {valid}.')
        return self._styles[style_id]

    def options(self) -> list[dict]:
        return [{"id": sid, "label": self._styles[sid].label} for sid in self._order]

    def __contains__(self, value: str) -> bool:
        return (value or "").strip().lower() in self._aliases
