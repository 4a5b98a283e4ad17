"""Shared fixtures for core unit tests"""

import pytest

from mdstream.core.assemble.blocks import BlockAssembler
from mdstream.core.parser import BlockParser


SAMPLE_MD = """\
# Title

Intro with **bold** and `code`.

- one
- two

  - nested

```python
print("hi")
```

> quoted

| a | b |
|---|---|
| 1 | 2 |

Last paragraph.
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return BlockParser()


@pytest.fixture(name="assembler")
def assembler_fixture():
    return BlockAssembler()


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
