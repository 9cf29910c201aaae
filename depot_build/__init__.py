"""
depot-build runs the depot CLI (https://depot.dev) inside a container and
decodes the build metadata it produces.

Build an image and check its size:
```python
from pathlib import Path

from depot_build import depot
from depot_build.request import BuildRequest, Secret

request = BuildRequest(
    token=Secret(token),
    project="abc123",
    directory=Path("."),
)
artifact = await depot.build(request)
print(artifact.image_name, artifact.image_bytes)
```
"""

__all__ = [
    "artifact",
    "config",
    "depot",
    "exceptions",
    "executor",
    "invocation",
    "metadata",
    "request",
    "version",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
