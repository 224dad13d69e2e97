"""
Parsed-tree editing of the XML files Cordova generates: Android resource
files (``strings.xml``, ``colors.xml``, ``styles.xml``, drawables),
``AndroidManifest.xml`` and iOS storyboards.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

import fs

ANDROID_NS = "http://schemas.android.com/apk/res/android"
ANDROID = "{%s}" % ANDROID_NS

for _prefix, _uri in (
    ("android", ANDROID_NS),
    ("tools",   "http://schemas.android.com/tools"),
    ("app",     "http://schemas.android.com/apk/res-auto"),
    ("aapt",    "http://schemas.android.com/aapt"),
):
    ET.register_namespace(_prefix, _uri)

_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'


class XmlResource:
    """
    Thin wrapper around one XML file.

    Attributes
    ----------
    path : Path
        File the tree was loaded from (and is saved back to).
    tree : ET.ElementTree
        Parsed XML tree, comments included.  Mutate through the helpers
        (or set ``modified``) then call ``save()``.
    """

    def __init__(self, path: Path, tree: ET.ElementTree, *, created: bool = False) -> None:
        self.path = path
        self.tree = tree
        self.modified = created

    @classmethod
    def load(cls, path: Path) -> "XmlResource":
        """Parse *path*. Raises ``ET.ParseError`` / ``OSError``."""
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        return cls(path, ET.parse(str(path), parser=parser))

    @classmethod
    def create(cls, path: Path, root_tag: str = "resources") -> "XmlResource":
        """A new, empty document that will be written on ``save()``."""
        return cls(path, ET.ElementTree(ET.Element(root_tag)), created=True)

    @classmethod
    def load_or_create(cls, path: Path, root_tag: str = "resources") -> "XmlResource":
        if path.exists():
            return cls.load(path)
        return cls.create(path, root_tag)

    @property
    def root(self) -> ET.Element:
        return self.tree.getroot()

    # ── <resources> helpers ───────────────────────────────────────────────

    def named(self, tag: str, name: str) -> list[ET.Element]:
        """Every ``<tag name="name">`` child of the root."""
        return [el for el in self.root.findall(tag) if el.get("name") == name]

    def get_value(self, tag: str, name: str) -> Optional[str]:
        found = self.named(tag, name)
        return (found[0].text or "").strip() if found else None

    def set_value(self, tag: str, name: str, value: str, *, create: bool = True) -> bool:
        """
        Set ``<tag name="name">`` to *value*, dropping duplicate entries.
        Returns True if the tree changed.
        """
        found = self.named(tag, name)
        changed = False
        for extra in found[1:]:
            self.root.remove(extra)
            changed = True
        if found:
            if (found[0].text or "") != value:
                found[0].text = value
                changed = True
        elif create:
            el = ET.SubElement(self.root, tag, name=name)
            el.text = value
            changed = True
        self.modified |= changed
        return changed

    def remove_named(self, tag: str, name: str) -> int:
        found = self.named(tag, name)
        for el in found:
            self.root.remove(el)
        self.modified |= bool(found)
        return len(found)

    # ── attribute helpers ─────────────────────────────────────────────────

    def set_attr(self, element: ET.Element, attr: str, value: str) -> bool:
        if element.get(attr) == value:
            return False
        element.set(attr, value)
        self.modified = True
        return True

    # ── output ────────────────────────────────────────────────────────────

    def as_text(self) -> str:
        """Return the document as an indented XML string."""
        ET.indent(self.tree, space="    ")
        return _DECLARATION + ET.tostring(self.root, encoding="unicode") + "\n"

    def save(self) -> bool:
        """Write the tree back if anything changed. Returns True on write."""
        if not self.modified:
            return False
        fs.write_text(self.path, self.as_text())
        self.modified = False
        return True
