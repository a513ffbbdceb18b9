"""Rewrite inline blob references in document content."""

from __future__ import annotations

from collections.abc import Callable, Iterable


def rewrite_blob_links(
    content: str,
    blob_names: Iterable[str],
    url_for: Callable[[str], str],
) -> str:
    """Point inline links at stored blobs.

    Every literal ``(<name>)`` for a name in *blob_names* becomes
    ``(<url_for(name)>)``, e.g. ``![](img1)`` turns into
    ``![](http://host/static/a/b/img1)``. Names that do not appear in
    *content* are ignored.
    """
    for name in blob_names:
        content = content.replace(f"({name})", f"({url_for(name)})")
    return content
