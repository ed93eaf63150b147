"""
EIF Parsers
============

- ``reader``   -- bounds-checked big-endian cursor over a buffer
- ``source``   -- seek/read adapter over a seekable binary stream
- ``header``   -- file header decode / encode / validation
- ``sections`` -- section header decoding and the section walk
"""
