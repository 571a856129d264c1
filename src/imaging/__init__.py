"""Functional modules for image sessions.

Submodules
----------
io_utils
    Raster codec, mime helpers and file I/O.
dimensions
    Target size resolution under aspect and maximum-size constraints.
resize
    Progressive downscaling and crop helpers.
session
    Stateful select/resize/crop/restore/upload workflow.
"""
