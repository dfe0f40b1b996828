"""Text format codecs.

Each codec module exposes ``parse``, ``format`` and ``detect`` functions
bundled into a ``FormatCodec``:

- geojson: GeoJSON (concatenated objects allowed)
- wkt: WKT and EWKT
- dsv: CSV / delimiter-separated coordinate pairs
- kml, gpx: XML formats, parsed with lxml
- polyline: Encoded Polyline, precision 5 and 6
- shapefile: base64 zipped shapefile, read with fiona (parse only)

``registry`` orders the codecs for auto-detection and dispatches by name.
"""
