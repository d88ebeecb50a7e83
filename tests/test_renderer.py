"""Tests for rendering parsed documents."""

import pytest

from lithe.ast import Parser, parse
from lithe.compiler import Renderer, render
from lithe.compiler.renderer import format_output
from lithe.compiler.spec import CodeFragment, ProseFragment
from lithe.config import RenderOptions
from lithe.exceptions import ExecutionFailureError, MissingFileError, UnterminatedBlockError

from conftest import RecordingEvaluator

MODEL = "model { y ~ normal(a, sigma); }"


def test_hello_then_included_model(write, evaluator):
    write("model.stan", MODEL + "\n")
    source = write("doc.Rmd", "Hello\n\n{{< include model.stan >}}\n")

    doc = Parser().parse_file(source)
    rendered = Renderer(evaluator=evaluator).render(doc)

    prose, code = rendered.fragments
    assert isinstance(prose, ProseFragment)
    assert prose.html == "<p>Hello</p>\n"
    assert isinstance(code, CodeFragment)
    assert code.code == MODEL
    assert code.language == "stan"
    assert code.output == ""
    assert code.source == "model.stan"
    assert evaluator.calls == []

    html = rendered.to_html()
    assert html.index("Hello") < html.index(MODEL)


def test_missing_include_is_missing_file_error(write):
    source = write("doc.Rmd", "Hello\n\n{{< include nope.stan >}}\n")
    doc = Parser().parse_file(source)

    with pytest.raises(MissingFileError) as exc:
        Renderer().render(doc)
    assert exc.value.path.name == "nope.stan"
    assert "unnamed-chunk-1" in str(exc.value)


def test_include_of_directory_is_missing_file_error(tmp_path, write):
    (tmp_path / "models").mkdir()
    source = write("doc.Rmd", '```{stan, file="models"}\n```\n')

    with pytest.raises(MissingFileError):
        Renderer().render(Parser().parse_file(source))


def test_absolute_include_path(tmp_path, write):
    model = write("elsewhere/m.stan", MODEL)
    doc = parse(f"{{{{< include {model} >}}}}\n", base_dir=tmp_path / "unrelated")

    rendered = Renderer().render(doc)
    assert rendered.fragments[0].code == MODEL


def test_unterminated_fence_never_renders(evaluator):
    with pytest.raises(UnterminatedBlockError):
        parse("Intro\n\n```{r}\nx <- 1\n")
    assert evaluator.calls == []


def test_render_is_deterministic(write, evaluator):
    write("model.stan", MODEL)
    source = write(
        "doc.Rmd",
        "---\ntitle: Same\n---\n\nText $y_i$.\n\n```{r fit}\nfit()\n```\n\n"
        "{{< include model.stan >}}\n",
    )
    doc = Parser().parse_file(source)
    options = RenderOptions(code_folding="show")

    first = Renderer(evaluator=evaluator).render(doc, options).to_html()
    second = Renderer(evaluator=evaluator).render(doc, options).to_html()
    assert first == second


def test_prose_order_is_preserved():
    a = "Alpha paragraph."
    b = "Beta paragraph."
    chunk = "```{r}\nx\n```"

    forward = render(parse(f"{a}\n\n{chunk}\n\n{b}\n"))
    swapped = render(parse(f"{b}\n\n{chunk}\n\n{a}\n"))

    forward_prose = [f.html for f in forward.fragments if isinstance(f, ProseFragment)]
    swapped_prose = [f.html for f in swapped.fragments if isinstance(f, ProseFragment)]
    assert forward_prose == list(reversed(swapped_prose))


def test_executable_chunk_output_gets_comment_marker(evaluator):
    doc = parse("```{r}\nmean(x)\n```\n")
    rendered = Renderer(evaluator=evaluator).render(doc, RenderOptions(comment="#>"))

    code = rendered.fragments[0]
    assert code.output == "#> ran r: mean(x)"
    assert evaluator.calls[0].label == "unnamed-chunk-1"
    assert evaluator.calls[0].digits == 7


def test_digits_reach_the_evaluator(evaluator):
    Renderer(evaluator=evaluator).render(parse("```{r}\n1/3\n```\n"), RenderOptions(digits=2))
    assert evaluator.calls[0].digits == 2


def test_chunk_without_evaluator_shows_code_only():
    rendered = render(parse("```{r}\nmean(x)\n```\n"))
    assert rendered.fragments[0].code == "mean(x)"
    assert rendered.fragments[0].output == ""


def test_plain_fence_is_never_evaluated(evaluator):
    Renderer(evaluator=evaluator).render(parse("```r\nmean(x)\n```\n"))
    assert evaluator.calls == []


def test_chunk_echo_option_hides_code(evaluator):
    rendered = Renderer(evaluator=evaluator).render(parse("```{r, echo=FALSE}\n1\n```\n"))
    html = rendered.to_html()
    assert rendered.fragments[0].echo is False
    assert "<code" not in html
    assert "## ran r: 1" in html


def test_evaluator_failure_names_chunk():
    failing = RecordingEvaluator(fail_on="stop")
    doc = parse("```{r ok}\n1\n```\n\n```{r broken}\nstop()\n```\n")

    with pytest.raises(ExecutionFailureError) as exc:
        Renderer(evaluator=failing).render(doc)
    assert exc.value.label == "broken"
    assert "object not found" in str(exc.value)


def test_math_survives_markdown():
    rendered = render(parse("Let $y_i = a + b*x_i$ and\n\n$$\\sigma_y^2$$\n"))
    assert len(rendered.fragments) == 1
    html = rendered.fragments[0].html
    assert "$y_i = a + b*x_i$" in html
    assert "$$\\sigma_y^2$$" in html
    assert "<em>" not in html


def test_markup_off_passes_prose_through():
    rendered = render(parse("Some *raw* text\n"), RenderOptions(markup=False))
    assert rendered.fragments[0].html == "Some *raw* text"


@pytest.mark.parametrize(
    "folding,expected",
    [("none", None), ("show", "<details open>"), ("hide", "<details>")],
)
def test_code_folding(folding, expected):
    html = render(parse("```python\nx = 1\n```\n"), RenderOptions(code_folding=folding)).to_html()
    if expected is None:
        assert "<details" not in html
    else:
        assert expected in html


def test_code_is_escaped_in_html():
    html = render(parse("```stan\nreal<lower=0> sigma;\n```\n")).to_html()
    assert "real&lt;lower=0&gt; sigma;" in html


def test_title_and_author_in_page():
    html = render(parse("---\ntitle: Intro to Stan\nauthor: A. Writer\n---\nBody\n")).to_html()
    assert "<title>Intro to Stan</title>" in html
    assert "A. Writer" in html


def test_format_output():
    assert format_output("a\n\nb\n", "##") == "## a\n##\n## b"
    assert format_output("a\n", "") == "a"
    assert format_output("\n", "##") == ""


def test_include_false_runs_but_shows_nothing(evaluator):
    rendered = Renderer(evaluator=evaluator).render(
        parse("```{r setup, include=FALSE}\nlibrary(rstan)\n```\n")
    )
    assert [c.label for c in evaluator.calls] == ["setup"]
    assert rendered.fragments[0].echo is False
    assert rendered.fragments[0].output == ""
    assert "library(rstan)" not in rendered.to_html()
