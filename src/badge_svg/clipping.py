"""Clip/mask definition generation.

Text and image layers may be clipped to a shape layer. Each referenced shape
yields one definition whose id carries a render-scope suffix, so several
renders of the same template on one page never share an id.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Iterable, Sequence

from .config import ClipMode
from .template import ShapeLayer

logger = logging.getLogger(__name__)

DEFAULT_RENDER_SCOPE = "main"

_UNSAFE_ID_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(frozen=True)
class ClipDefinition:
    """A clipPath or mask built from a shape layer's path."""

    id: str
    source_id: str
    path: str
    kind: ClipMode = "clip-path"

    @property
    def reference(self) -> str:
        """Value for a clip-path or mask attribute."""
        return f"url(#{self.id})"


def new_render_scope(prefix: str = "render") -> str:
    """Create a fresh render scope token.

    Example:
        >>> new_render_scope("preview").startswith("preview-")
        True
    """
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def normalize_scope(scope: str | None) -> str:
    """Make a scope token safe for use inside XML ids."""
    if not scope:
        return DEFAULT_RENDER_SCOPE
    return _UNSAFE_ID_CHARS_RE.sub("-", scope)


def clip_id(shape_id: str, scope: str | None = DEFAULT_RENDER_SCOPE) -> str:
    """Scoped id of the clip definition for a shape.

    Example:
        >>> clip_id("circle", "main")
        'circle-main'
    """
    return f"{shape_id}-{normalize_scope(scope)}"


def generate_clip_definitions(
    shapes: Sequence[ShapeLayer],
    references: Iterable[str | None],
    scope: str | None = DEFAULT_RENDER_SCOPE,
    kind: ClipMode = "clip-path",
) -> list[ClipDefinition]:
    """Build one clip definition per distinct referenced shape.

    Args:
        shapes: Shape layers of the template.
        references: Clip references of text and image layers in paint
            order. None entries mean unclipped.
        scope: Render scope token appended to every id.
        kind: "clip-path" or "mask".

    Returns:
        Definitions in first-reference order. Unreferenced shapes produce
        nothing; dangling references are logged and skipped.
    """
    by_id = {shape.id: shape for shape in shapes}
    definitions: list[ClipDefinition] = []
    seen: set[str] = set()

    for reference in references:
        if reference is None or reference in seen:
            continue
        seen.add(reference)

        shape = by_id.get(reference)
        if shape is None:
            logger.warning("Clip reference '%s' names no shape layer", reference)
            continue

        definitions.append(
            ClipDefinition(
                id=clip_id(shape.id, scope),
                source_id=shape.id,
                path=shape.path,
                kind=kind,
            )
        )

    return definitions
