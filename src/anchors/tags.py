"""Tag definitions and the registry that merges them from settings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterator

from anchors.constants import BEHAVIORS, SCOPES, STYLE_MODES

_CAMEL = re.compile(r"(?<=[a-z0-9])([A-Z])")


@dataclass(frozen=True)
class TagDefinition:
    """Static configuration for one tag name."""

    name: str
    behavior: str = "plain"
    scope: str = "workspace"
    style_mode: str = "tag"
    highlight_color: str | None = None
    background_color: str | None = None
    icon_color: str = "default"
    border_style: str | None = None
    border_radius: int | None = None
    bold: bool = True
    italic: bool = True

    @property
    def key(self) -> str:
        return self.name.upper()

    @property
    def is_region(self) -> bool:
        return self.behavior == "region"

    @property
    def is_link(self) -> bool:
        return self.behavior == "link"


DEFAULT_TAGS = (
    TagDefinition("ANCHOR", scope="file", highlight_color="#A8C023"),
    TagDefinition("TODO", scope="workspace", icon_color="blue", highlight_color="#3ea8ff"),
    TagDefinition("FIXME", scope="workspace", icon_color="red", highlight_color="#F44336"),
    TagDefinition("STUB", scope="file", icon_color="purple", highlight_color="#BA68C8"),
    TagDefinition("NOTE", scope="file", icon_color="orange", highlight_color="#FFB300"),
    TagDefinition("REVIEW", scope="workspace", icon_color="green", highlight_color="#64DD17"),
    TagDefinition("SECTION", behavior="region", scope="workspace", icon_color="blurple", highlight_color="#896afc"),
    TagDefinition("LINK", behavior="link", scope="workspace", icon_color="blue", highlight_color="#2ecc71"),
)

_FIELD_NAMES = {f.name for f in fields(TagDefinition)}


def python_key(key: str) -> str:
    """Normalise camelCase or hyphenated setting keys to snake_case."""
    return _CAMEL.sub(r"_\1", key).replace("-", "_").lower()


def _normalise(entry: dict[str, Any]) -> dict[str, Any]:
    """Translate one raw settings entry into TagDefinition fields.

    Legacy ``is_region``/``style_comment`` flags are applied first so that
    explicit ``behavior``/``style_mode`` values in the same entry win.
    """
    raw = {python_key(str(k)): v for k, v in entry.items()}
    out: dict[str, Any] = {}
    if raw.get("is_region"):
        out["behavior"] = "region"
    if "style_comment" in raw:
        out["style_mode"] = "comment" if raw["style_comment"] else "tag"
    if "is_bold" in raw:
        out["bold"] = bool(raw["is_bold"])
    if "is_italic" in raw:
        out["italic"] = bool(raw["is_italic"])
    for key, value in raw.items():
        if key in _FIELD_NAMES and key != "name" and value is not None:
            out[key] = value

    if out.get("behavior") not in (None, *BEHAVIORS):
        out.pop("behavior")
    if out.get("scope") not in (None, *SCOPES):
        out.pop("scope")
    if out.get("style_mode") not in (None, *STYLE_MODES):
        out.pop("style_mode")
    return out


class TagRegistry:
    """Case-insensitive map of tag name to TagDefinition."""

    def __init__(self, tags: list[TagDefinition] | tuple[TagDefinition, ...] = ()):
        self._tags: dict[str, TagDefinition] = {}
        for tag in tags:
            self.register(tag)

    def register(self, tag: TagDefinition) -> None:
        self._tags[tag.key] = tag

    def unregister(self, name: str) -> bool:
        return self._tags.pop(name.upper(), None) is not None

    def get(self, name: str) -> TagDefinition | None:
        return self._tags.get(name.upper())

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._tags

    def __iter__(self) -> Iterator[TagDefinition]:
        return iter(self._tags.values())

    def __len__(self) -> int:
        return len(self._tags)

    def names(self) -> list[str]:
        return [tag.name for tag in self._tags.values()]

    def end_names(self, end_tag: str) -> list[str]:
        """Synthesized end-tag tokens for every region tag."""
        return [end_tag + tag.name for tag in self._tags.values() if tag.is_region]

    def apply(self, name: str, entry: dict[str, Any]) -> None:
        """Merge one settings entry over the current definition of name."""
        if entry.get("enabled") is False:
            self.unregister(name)
            return
        current = self.get(name) or TagDefinition(name)
        self.register(replace(current, name=name, **_normalise(entry)))

    @classmethod
    def from_settings(cls, legacy: list[dict] | None = None, anchors: dict[str, dict] | None = None) -> TagRegistry:
        """Build the registry: defaults, then the legacy list, then the keyed map.

        Later layers win, so a keyed-map entry overrides a legacy entry for
        the same tag name.
        """
        registry = cls(DEFAULT_TAGS)
        for entry in legacy or []:
            if not isinstance(entry, dict) or not entry.get("tag"):
                continue
            registry.apply(str(entry["tag"]), {k: v for k, v in entry.items() if k != "tag"})
        for name, entry in (anchors or {}).items():
            registry.apply(str(name), entry if isinstance(entry, dict) else {})
        return registry


@dataclass
class TagSummary:
    """Row describing one registered tag, for listings."""

    name: str
    behavior: str
    scope: str
    style_mode: str
    end_token: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def summarize(registry: TagRegistry, end_tag: str) -> list[TagSummary]:
    """Describe every registered tag, sorted by name."""
    rows = []
    for tag in sorted(registry, key=lambda t: t.key):
        rows.append(
            TagSummary(
                name=tag.name,
                behavior=tag.behavior,
                scope=tag.scope,
                style_mode=tag.style_mode,
                end_token=end_tag + tag.name if tag.is_region else None,
                extra={"color": tag.highlight_color} if tag.highlight_color else {},
            )
        )
    return rows
