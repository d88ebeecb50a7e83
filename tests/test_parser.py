"""Tests for splitting literate source into blocks."""

from pathlib import Path

import pytest

from lithe.ast import CodeBlock, IncludeDirective, Parser, ProseBlock, parse
from lithe.exceptions import MalformedDirectiveError, ParseError, UnterminatedBlockError

SOURCE = '''---
title: "Stan Intro"
author: Someone
options:
  cache: true
---

Some prose with $y_i = a + b x_i$.

```{r setup, include=FALSE}
library(rstan)
```

More prose.

```{stan model, file="model.stan", output.var="fit"}
```

```python
print(1)
```
'''


def test_parse_front_matter_and_blocks():
    doc = parse(SOURCE)

    assert doc.meta["title"] == "Stan Intro"
    assert doc.meta["options"] == {"cache": True}
    assert doc.title == "Stan Intro"

    kinds = [type(b) for b in doc.blocks]
    assert kinds == [ProseBlock, CodeBlock, ProseBlock, IncludeDirective, CodeBlock]


def test_braced_chunk_is_executable_with_label_and_options():
    doc = parse(SOURCE)
    setup = doc.blocks[1]

    assert isinstance(setup, CodeBlock)
    assert setup.language == "r"
    assert setup.label == "setup"
    assert setup.execute is True
    assert setup.options == {"include": False}
    assert setup.code == "library(rstan)"
    assert setup.line == 10


def test_file_option_makes_include_directive():
    doc = parse(SOURCE)
    inc = doc.blocks[3]

    assert isinstance(inc, IncludeDirective)
    assert inc.path == "model.stan"
    assert inc.language == "stan"
    assert inc.label == "model"
    assert inc.execute is False
    assert inc.options == {"output.var": "fit"}


def test_plain_fence_is_display_only():
    doc = parse(SOURCE)
    plain = doc.blocks[4]

    assert isinstance(plain, CodeBlock)
    assert plain.language == "python"
    assert plain.execute is False
    assert plain.label is None
    assert plain.code == "print(1)"


def test_prose_is_kept_verbatim():
    doc = parse("Hello\n\n```{r}\n1\n```\n\nWorld *again*\n")
    prose = [b.text for b in doc.blocks if isinstance(b, ProseBlock)]
    assert prose == ["Hello", "World *again*"]


def test_unnamed_chunks_are_numbered_in_order():
    src = "```{r}\n1\n```\n\n```{r named}\n2\n```\n\n```{r}\n3\n```\n"
    doc = parse(src)
    assert [b.label for b in doc.blocks] == ["unnamed-chunk-1", "named", "unnamed-chunk-3"]


def test_eval_false_disables_execution():
    doc = parse("```{r, eval=FALSE}\nstop()\n```\n")
    assert doc.blocks[0].execute is False


def test_include_with_eval_true_is_executable():
    doc = parse('```{r, file="a.R", eval=TRUE}\n```\n')
    assert isinstance(doc.blocks[0], IncludeDirective)
    assert doc.blocks[0].execute is True


def test_read_lines_code_option_is_include():
    doc = parse("```{stan, code=readLines('m.stan')}\n```\n")
    inc = doc.blocks[0]
    assert isinstance(inc, IncludeDirective)
    assert inc.path == "m.stan"


def test_include_shortcode():
    doc = parse("Hello\n\n{{< include models/normal.stan >}}\n\nBye\n")
    assert [type(b) for b in doc.blocks] == [ProseBlock, IncludeDirective, ProseBlock]
    inc = doc.blocks[1]
    assert inc.path == "models/normal.stan"
    assert inc.language == "stan"
    assert inc.label == "unnamed-chunk-1"
    assert inc.execute is False


def test_longer_fence_contains_shorter_one():
    src = "````markdown\n```{r}\nx\n```\n````\n"
    doc = parse(src)
    assert len(doc.blocks) == 1
    assert doc.blocks[0].code == "```{r}\nx\n```"


def test_tilde_fence():
    doc = parse("~~~stan\nmodel {}\n~~~\n")
    assert doc.blocks[0].language == "stan"
    assert doc.blocks[0].code == "model {}"


def test_unterminated_fence_reports_opening_line():
    with pytest.raises(UnterminatedBlockError) as exc:
        parse("Intro\n\n```{r}\nx <- 1\n")
    assert exc.value.line == 3
    assert "line 3" in str(exc.value)
    assert isinstance(exc.value, ParseError)


def test_unterminated_front_matter():
    with pytest.raises(UnterminatedBlockError):
        parse("---\ntitle: x\n\nbody\n")


def test_front_matter_must_be_mapping():
    with pytest.raises(MalformedDirectiveError):
        parse("---\n- a\n- b\n---\nbody\n")


@pytest.mark.parametrize(
    "src",
    [
        '```{r, file="model.stan"}\nnot empty\n```\n',
        "```{r, file=model.stan}\n```\n",
        '```{r, file=""}\n```\n',
        "```{r, code=paste('x')}\n```\n",
        "{{< include >}}\n",
        "{{< include model.stan\n",
        "```{}\n```\n",
        '```{r, label="a", file="x", code=readLines("y")}\n```\n',
    ],
)
def test_malformed_directives(src):
    with pytest.raises(MalformedDirectiveError):
        parse(src)


def test_duplicate_labels_rejected():
    with pytest.raises(MalformedDirectiveError):
        parse("```{r a}\n1\n```\n\n```{r a}\n2\n```\n")


def test_generated_label_skips_explicit_one():
    doc = parse("```{r unnamed-chunk-2}\n1\n```\n\n```{r}\n2\n```\n\n{{< include m.stan >}}\n")
    assert [b.label for b in doc.blocks] == [
        "unnamed-chunk-2",
        "unnamed-chunk-3",
        "unnamed-chunk-4",
    ]


def test_parse_file_sets_base_dir(write):
    path = write("chapter/intro.Rmd", "Hello\n")
    doc = Parser().parse_file(path)

    assert doc.base_dir == path.parent.resolve()
    assert doc.source_path == path.resolve()
    assert doc.title == "intro"


def test_document_is_immutable():
    doc = parse("Hello\n")
    with pytest.raises(Exception):
        doc.blocks = ()  # type: ignore[misc]
    assert isinstance(doc.blocks, tuple)


def test_default_base_dir_is_cwd():
    assert parse("x\n").base_dir == Path.cwd()
