import platform

from nox import Session, options, parametrize, session

options.sessions = ["test", "coverage", "lint"]


@session(python=["3.10", "3.11", "3.12", "3.13"])
def test(s: Session):
    s.install("-e", ".[test]")
    coverage_file = f".coverage.{platform.machine()}.{platform.system()}.{s.python}"
    s.run("coverage", "run", "--data-file", coverage_file, "-m", "pytest", "tests")


@session(venv_backend="none")
def coverage(s: Session):
    s.run("coverage", "combine")
    s.run("coverage", "html")
    s.run("coverage", "xml")


@session(python="3.12")
def fuzz(s: Session):
    s.install("-e", ".[test]")
    s.run("pytest", "fuzz_tests")


@session(venv_backend="none")
@parametrize("command", [["ruff", "check", "."], ["ruff", "format", "--check", "."]])
def lint(s: Session, command: list[str]):
    s.run(*command)


@session(venv_backend="none")
def format(s: Session) -> None:
    s.run("ruff", "check", ".", "--select", "I", "--fix")
    s.run("ruff", "format", ".")
