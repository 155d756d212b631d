# build.py
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional, Union

from .errors import MalformedData, NotFound
from .model import Build

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# build.xml layout (only the parts we read):
#
#   <build>                                   (or <flow-build>, ...)
#     <actions>
#       <org.jenkinsci.plugins.buildenvironment.actions.BuildEnvironmentBuildAction>
#         <dataHolders>
#           <org.jenkinsci.plugins.buildenvironment.data.EnvVarsData>
#             <data>
#               <entry><string>NAME</string><string>value</string></entry>
#               ...
#     <number>5</number>                      (absent on newer Jenkins)
#     <result>SUCCESS</result>
#     <duration>20</duration>
#     <timestamp>1000</timestamp>
#   </build>
#
# Newer Jenkins writes an XML 1.1 declaration which expat refuses, the
# document itself is plain 1.0 so the declaration is rewritten first.
# ---------------------------------------------------------------------

BUILD_XML = "build.xml"

BUILD_ROOT_TAGS = frozenset({
    "build",
    "flow-build",
    "matrix-build",
    "matrix-run",
    "maven2-moduleset-build",
    "maven-build",
})

ENV_ACTION_TAG = "org.jenkinsci.plugins.buildenvironment.actions.BuildEnvironmentBuildAction"
ENV_DATA_TAG = "org.jenkinsci.plugins.buildenvironment.data.EnvVarsData"
ENV_DATA_PATH = f"actions/{ENV_ACTION_TAG}/dataHolders/{ENV_DATA_TAG}/data"

_XML_11_DECL = re.compile(rb"""^((?:\xef\xbb\xbf)?\s*<\?xml\s+version\s*=\s*)(['"])1\.1\2""")
_DIGITS = re.compile(r"[0-9]+")


def normalize_xml_version(data: bytes) -> bytes:
    """Rewrite a leading XML 1.1 declaration to 1.0; everything else is untouched."""
    return _XML_11_DECL.sub(rb"\g<1>\g<2>1.0\g<2>", data, count=1)


def _int_field(root: ET.Element, tag: str, source: Union[str, Path]) -> Optional[int]:
    elem = root.find(tag)
    if elem is None or elem.text is None or not elem.text.strip():
        return None
    try:
        return int(elem.text.strip())
    except ValueError:
        raise MalformedData(source, f"<{tag}> is not an integer: {elem.text.strip()!r}") from None


def _positive_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    if not _DIGITS.fullmatch(value):
        return None
    n = int(value)
    return n if n > 0 else None


def _env_vars(root: ET.Element) -> Dict[str, str]:
    env: Dict[str, str] = {}

    data = root.find(ENV_DATA_PATH)
    if data is None:
        return env

    for entry in data:
        if entry.tag != "entry":
            continue
        values = [s.text or "" for s in entry if s.tag == "string"]
        if len(values) != 2:
            logger.debug("skipping env entry with %d values", len(values))
            continue
        env[values[0]] = values[1]  # last write wins

    return env


def parse_build_xml(
    data: bytes,
    *,
    source: Union[str, Path] = "<bytes>",
    dir_name: Optional[str] = None,
) -> Build:
    """
    Decode the contents of a build.xml file.

    Args:
        data: raw file contents
        source: file path, only used in errors / logs
        dir_name: name of the build directory, last-resort build number

    Returns:
        Build

    Raises:
        MalformedData: unparsable XML, unknown root element, non-integer
            numeric field, or no usable build number.
    """
    try:
        root = ET.fromstring(normalize_xml_version(data))
    except ET.ParseError as e:
        raise MalformedData(source, f"invalid XML: {e}") from None

    if root.tag not in BUILD_ROOT_TAGS:
        raise MalformedData(source, f"unexpected root element <{root.tag}>")

    timestamp = _int_field(root, "timestamp", source) or 0
    duration = _int_field(root, "duration", source) or 0
    xml_number = _int_field(root, "number", source)
    result_elem = root.find("result")
    result = (result_elem.text or "").strip() if result_elem is not None else ""

    env = _env_vars(root)

    env_number = _positive_int(env.get("BUILD_NUMBER"))
    if xml_number is not None and xml_number > 0:
        number = xml_number
        if env_number is not None and env_number != xml_number:
            logger.warning(
                "%s: <number> %d disagrees with BUILD_NUMBER %d, using <number>",
                source, xml_number, env_number,
            )
    elif env_number is not None:
        number = env_number
    else:
        number = _positive_int(dir_name)

    if number is None:
        raise MalformedData(source, "no valid build number")

    return Build(
        number=number,
        timestamp=timestamp,
        duration=duration,
        result=result,
        env_vars=env,
    )


def parse_build(build_dir: Union[str, Path]) -> Build:
    """
    Load the build stored in `build_dir` (a directory containing build.xml).

    Raises:
        NotFound: the directory or its build.xml does not exist.
        MalformedData: see parse_build_xml.
    """
    build_dir = Path(build_dir)
    if not build_dir.is_dir():
        raise NotFound(build_dir, "build directory does not exist")

    xml_path = build_dir / BUILD_XML
    try:
        data = xml_path.read_bytes()
    except FileNotFoundError:
        raise NotFound(xml_path, "no build.xml") from None
    except OSError as e:
        raise MalformedData(xml_path, f"cannot read: {e}") from None

    return parse_build_xml(data, source=xml_path, dir_name=build_dir.resolve().name)
