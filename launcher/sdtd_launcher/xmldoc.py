from __future__ import annotations
import os
import shutil
import xml.etree.ElementTree as ET
from pathlib import Path


def parse(path: Path) -> ET.ElementTree:
    """Parse keeping comments, both game XML files are heavily commented."""
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    return ET.parse(path, parser=parser)


def write_atomic(tree: ET.ElementTree, path: Path) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tree.write(tmp, encoding="UTF-8", xml_declaration=True)
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()
