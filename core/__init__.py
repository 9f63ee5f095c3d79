"""
Core modules for the image transform service.

- engine: CodecEngine handle and single-use Pipeline
- image: decode/encode, pixel operations, compositing, analysis
- constants / enums: defaults and public names
"""
