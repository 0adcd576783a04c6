from itertools import chain
from pathlib import Path
from shutil import rmtree

from invoke import UnexpectedExit, task

TOP_DIR = Path(__file__).parent
DOC_DIR = TOP_DIR / "docs"
SRC_DIR = TOP_DIR / "src"
SRC_ENV = {"PYTHONPATH": str(SRC_DIR)}


def source_arg(pattern):
    """Converts a source pattern to a command line argument."""
    if pattern is None:
        paths = chain(
            SRC_DIR.glob("**/*.py"),
            (TOP_DIR / "tests").glob("**/*.py"),
            [Path(__file__)],
        )
    else:
        paths = Path.cwd().glob(pattern)
    for path in paths:
        yield str(path)


def remove_dir(path):
    """Recursively removes a directory."""
    if path.exists():
        rmtree(path)


@task
def clean(c):
    """Clean up our output."""
    print("Cleaning up...")
    remove_dir(DOC_DIR)
    remove_dir(TOP_DIR / "doccheck")


@task
def lint(c, src=None):
    """Check sources with PyLint."""
    print("Checking sources with PyLint...")
    cmd = ["pylint"]
    sources = set(source_arg(src))
    sources.remove(__file__)
    cmd += sources
    with c.cd(str(TOP_DIR)):
        c.run(" ".join(cmd), env=SRC_ENV, warn=True, pty=True)


@task
def types(c, src=None, clean=False):
    """Check sources with mypy."""
    if clean:
        print("Clearing mypy cache...")
        remove_dir(TOP_DIR / ".mypy_cache")
    print("Checking sources with mypy...")
    cmd = ["mypy"]
    sources = set(source_arg(src))
    sources.remove(__file__)
    cmd += sources
    with c.cd(str(TOP_DIR)):
        try:
            c.run(" ".join(cmd), env=SRC_ENV, pty=True)
        except UnexpectedExit as ex:
            if ex.result.exited < 0:
                print(ex)


@task
def apidocs(c):
    """Generate API documentation as HTML files."""
    api_dir = DOC_DIR / "api"
    remove_dir(api_dir)
    api_dir.mkdir(parents=True)
    cmd = [
        "pydoctor",
        "--make-html",
        f"--html-output={api_dir}",
        "--project-name=html-validator-plugin",
        "--intersphinx=https://docs.python.org/3/objects.inv",
        f"{SRC_DIR}/htmlvalidator",
    ]
    c.run(" ".join(cmd))


@task(pre=[apidocs])
def doccheck(c):
    """Check our generated documentation using our own command line tool."""
    pages = " ".join(str(path) for path in (DOC_DIR / "api").glob("*.html"))
    c.run(
        f"html-validator --report-dir {TOP_DIR / 'doccheck'} {pages}",
        env=SRC_ENV,
        warn=True,
    )


@task
def unittest(c, junit_xml=None):
    """Run unit tests."""
    args = ["pytest"]
    if junit_xml is not None:
        args.append(f"--junit-xml={junit_xml}")
    args.append("tests")
    with c.cd(str(TOP_DIR)):
        c.run(" ".join(args), env=SRC_ENV, pty=True)


@task(post=[unittest, lint, types])
def test(c):
    """Run all tests."""
