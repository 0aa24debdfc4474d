import sys
from pathlib import Path

import pytest

# ensure the src layout is importable for tests
root = Path(__file__).resolve().parents[1] / "src"
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from ppt_studio.project import create_project  # noqa: E402


@pytest.fixture
def project(tmp_path):
    """A freshly scaffolded project."""
    return create_project(tmp_path, "Demo Talk")


@pytest.fixture
def write_script(project):
    """Write the project's sources/script.md from slide sections."""
    def _write(body, front_matter='title: "Demo Talk"'):
        project.script.write_text(f"---\n{front_matter}\n---\n\n# Slides\n\n{body}", encoding="utf-8")
        return project.script
    return _write
