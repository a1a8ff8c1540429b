"""
Frame proxy service.

A single-hop HTTP relay that fetches a caller-specified resource, removes the
response headers that block iframe embedding and replays the rest, plus HEAD
based checks that report whether a target is frameable.

Packages:
- proxy: target resolution, upstream fetch, header sanitizing, relay, /proxy
- inspection: /check and /broken frameability endpoints

Modules:
- config: Pydantic Settings loaded from the environment
- models: JSON response models
- errors: InputError / UpstreamError
- main: FastAPI application factory
"""

__version__ = "1.0.0"
