from __future__ import annotations

from lxml import etree


def find_first(parent: etree._Element | None, tag: str) -> etree._Element | None:
    """Return the first descendant named *tag*, in any namespace or none.

    Tries the namespace-wildcard lookup first, then the unqualified name.
    A missing *parent* yields None so traversal can chain without checks.
    """
    if parent is None:
        return None
    found = parent.find(f".//{{*}}{tag}")
    if found is None:
        found = parent.find(f".//{tag}")
    return found


def find_child(parent: etree._Element | None, tag: str) -> etree._Element | None:
    """Like find_first, restricted to direct children."""
    if parent is None:
        return None
    found = parent.find(f"{{*}}{tag}")
    if found is None:
        found = parent.find(tag)
    return found


def find_all(root: etree._Element, tag: str) -> list[etree._Element]:
    """Return every element named *tag* in document order, *root* included."""
    matches = list(root.iter(f"{{*}}{tag}"))
    if not matches:
        matches = list(root.iter(tag))
    return matches


def element_text(el: etree._Element | None) -> str:
    """Stripped text content of *el*, descendants included."""
    if el is None:
        return ""
    return etree.tostring(el, method="text", encoding="unicode", with_tail=False).strip()


def tag_text(parent: etree._Element | None, tag: str) -> str:
    """Text of the first *tag* under *parent*, or "" when absent."""
    return element_text(find_first(parent, tag))
