"""Shared pytest fixtures for the geofiddle test suite."""

from __future__ import annotations

import pytest

from geofiddle.models.feature import Feature
from geofiddle.models.geometry import LineString, Point, Polygon

# ---------------------------------------------------------------------------
# Sample text fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def geojson_feature_collection() -> str:
    """FeatureCollection with a named point and a polygon."""
    return """
    {
      "type": "FeatureCollection",
      "features": [
        {
          "type": "Feature",
          "id": "p1",
          "geometry": {"type": "Point", "coordinates": [-0.1276, 51.5072]},
          "properties": {"name": "London"}
        },
        {
          "type": "Feature",
          "geometry": {
            "type": "Polygon",
            "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]
          },
          "properties": {}
        }
      ]
    }
    """


@pytest.fixture()
def kml_document() -> str:
    """KML 2.2 document with a point, a line and a polygon with a hole."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark id="pm-1">
      <name>Tower</name>
      <description>A landmark</description>
      <ExtendedData>
        <Data name="height"><value>96</value></Data>
      </ExtendedData>
      <Point><coordinates>-0.1246,51.5007,96</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>Route</name>
      <LineString><coordinates>0,0 1,1 2,2</coordinates></LineString>
    </Placemark>
    <Placemark>
      <name>Field</name>
      <Polygon>
        <outerBoundaryIs><LinearRing><coordinates>
          0,0 10,0 10,10 0,10 0,0
        </coordinates></LinearRing></outerBoundaryIs>
        <innerBoundaryIs><LinearRing><coordinates>
          2,2 4,2 4,4 2,4 2,2
        </coordinates></LinearRing></innerBoundaryIs>
      </Polygon>
    </Placemark>
  </Document>
</kml>"""


@pytest.fixture()
def gpx_document() -> str:
    """GPX 1.1 document with one track, one route and one waypoint."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="51.5" lon="-0.12"><ele>11.5</ele><name>Start</name><desc>Start point</desc></wpt>
  <rte><name>Detour</name>
    <rtept lat="51.0" lon="-1.0"/><rtept lat="51.1" lon="-1.1"/>
  </rte>
  <trk><name>Morning run</name><type>running</type>
    <trkseg>
      <trkpt lat="51.50" lon="-0.12"><ele>10</ele></trkpt>
      <trkpt lat="51.51" lon="-0.13"><ele>12</ele></trkpt>
    </trkseg>
  </trk>
</gpx>"""


# ---------------------------------------------------------------------------
# Feature fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_features() -> tuple[Feature, ...]:
    """A named point, an unnamed line and a square polygon in WGS 84."""
    return (
        Feature(id="feature-0", geometry=Point((-0.1276, 51.5072)), properties={"name": "London"}),
        Feature(id="feature-1", geometry=LineString(((0.0, 0.0), (1.0, 1.0), (2.0, 0.5)))),
        Feature(
            id="feature-2",
            geometry=Polygon(
                (((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0)),)
            ),
        ),
    )
