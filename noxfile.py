import nox

PYTHON_VERSION = "3.11"
SOURCES = ["api", "common", "packages"]


@nox.session(python=PYTHON_VERSION)
def tests(session):
    session.run("poetry", "install", "--all-extras", external=True)
    session.run("poetry", "run", "pytest", "tests/unit", *session.posargs, external=True)


@nox.session(python=PYTHON_VERSION)
def lint(session):
    session.run("poetry", "install", "--all-extras", external=True)
    session.run("poetry", "run", "ruff", "check", ".", external=True)


@nox.session(python=PYTHON_VERSION)
def format(session):
    session.run("poetry", "install", "--all-extras", external=True)
    session.run("poetry", "run", "black", "--check", *SOURCES, external=True)
    session.run("poetry", "run", "ruff", "check", ".", external=True)


@nox.session(python=PYTHON_VERSION)
def migrate(session):
    """Apply alembic revisions to the database named by the DB_* settings."""
    session.run("poetry", "install", external=True)
    session.run("poetry", "run", "alembic", "upgrade", *(session.posargs or ["head"]), external=True)
