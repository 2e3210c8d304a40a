"""KML placemark ingestion."""

from __future__ import annotations

import logging
import math
import uuid

from lxml import etree

from ...models.domain import Waypoint

logger = logging.getLogger(__name__)

# KML files in the wild come with and without the OGC namespace, so match on local names.
PLACEMARK_XPATH = "//*[local-name()='Placemark']"
NAME_XPATH = ".//*[local-name()='name']"
COORDINATES_XPATH = ".//*[local-name()='coordinates']"


def _first_text(node: etree._Element, xpath: str) -> str | None:
    matches = node.xpath(xpath)
    if not matches:
        return None
    return matches[0].text


def _parse_lng_lat(raw: str) -> tuple[float, float] | None:
    """Parse the first ``lng,lat[,alt]`` tuple of a <coordinates> element."""
    tokens = raw.strip().split()
    if not tokens:
        return None
    parts = tokens[0].split(",")
    if len(parts) < 2:
        return None
    try:
        lng, lat = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if math.isnan(lng) or math.isnan(lat):
        return None
    return lng, lat


def parse_kml(content: str | bytes) -> list[Waypoint]:
    """Return one waypoint per Placemark carrying a <coordinates> element.

    Unnamed placemarks are called ``"Point N"`` (1-based placemark position)
    and placemarks with unparsable coordinates are skipped.

    Raises:
        ValueError: If ``content`` is not well-formed XML.
    """
    payload = content.encode("utf-8") if isinstance(content, str) else content
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(payload, parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"Failed to parse KML: {exc}") from exc

    token = uuid.uuid4().hex[:8]
    points: list[Waypoint] = []
    skipped = 0
    for index, placemark in enumerate(root.xpath(PLACEMARK_XPATH)):
        raw_coordinates = _first_text(placemark, COORDINATES_XPATH)
        if raw_coordinates is None:
            continue
        parsed = _parse_lng_lat(raw_coordinates)
        if parsed is None:
            skipped += 1
            continue
        lng, lat = parsed
        name = (_first_text(placemark, NAME_XPATH) or "").strip() or f"Point {index + 1}"
        points.append(Waypoint(id=f"kml-{index}-{token}", name=name, lat=lat, lng=lng))

    if skipped:
        logger.warning("Skipped %d placemarks with invalid coordinates", skipped)
    logger.info("Parsed %d points from KML", len(points))
    return points
