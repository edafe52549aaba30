"""Test configuration and fixtures for postbuild tests."""

import pytest
import tempfile
import shutil
import os
import logging
from pathlib import Path

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from postbuild_pkg.config import (
    CleanupConfig,
    CompressionConfig,
    GlobalConfig,
    MinifyConfig,
    PipelineConfig,
    ProcessorKind,
    ReportingConfig,
)
from postbuild_pkg.file_filter import FileFilter


SAMPLE_JS = """// Application bootstrap
function greet(name) {
    /* build a friendly message */
    var message = "Hello, " + name;
    return message;
}

greet("world");
"""

SAMPLE_HTML = """<!DOCTYPE html>
<html>
  <head>
    <!-- page metadata -->
    <title>Test   Page</title>
    <style>
      body {
        margin: 0;
        color: #ffffff;
      }
    </style>
  </head>
  <body>
    <p>
      Hello    world
    </p>
    <script>
      // inline comment
      var  answer = 42;
    </script>
  </body>
</html>
"""

SAMPLE_CSS = """/* layout */
body {
    margin: 0px;
    padding: 0px;
}

.header   {
    color: #ffffff;
}
"""


def write_file(path, content):
    """Write text or bytes, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding='utf-8')
    return str(path)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def dist_dir(temp_dir):
    """Create a small build output tree."""
    dist = Path(temp_dir) / 'dist'
    write_file(dist / 'index.html', SAMPLE_HTML)
    write_file(dist / 'about' / 'index.html', SAMPLE_HTML)
    write_file(dist / 'assets' / 'app.js', SAMPLE_JS)
    write_file(dist / 'assets' / 'app.js.map', '{"version":3}')
    write_file(dist / 'assets' / 'vendor.min.js', 'var a=1;')
    write_file(dist / 'assets' / 'style.css', SAMPLE_CSS)
    write_file(dist / 'lib' / 'tracker.js', SAMPLE_JS)
    write_file(dist / '.hidden' / 'secret.js', SAMPLE_JS)
    return str(dist)


@pytest.fixture
def file_filter():
    return FileFilter()


@pytest.fixture
def js_config():
    return MinifyConfig(enabled=True, extensions=('.js', '.mjs'), ignore_patterns=('**/*.min.js',))


@pytest.fixture
def html_config():
    return MinifyConfig(enabled=True, extensions=('.html',))


@pytest.fixture
def css_config():
    return MinifyConfig(enabled=True, extensions=('.css',), ignore_patterns=('**/*.min.css',))


@pytest.fixture
def gzip_config():
    return CompressionConfig(enabled=True, algorithm='gzip', level=9, min_size=1024,
                             extensions=('.js', '.css', '.html'), ignore_patterns=('**/*.gz', '**/*.br'))


@pytest.fixture
def cleanup_config():
    return CleanupConfig(enabled=True, patterns=('**/*.map', '**/*.tmp'), concurrency=4)


@pytest.fixture
def pipeline_config(temp_dir):
    """Pipeline with javascript, html, cleanup and gzip enabled, rooted at temp_dir."""
    return PipelineConfig(
        target='compression',
        global_config=GlobalConfig(base_path=temp_dir, dist_path='dist', verbose=False),
        processors={
            ProcessorKind.JAVASCRIPT: MinifyConfig(enabled=True, extensions=('.js',),
                                                   ignore_patterns=('**/*.min.js', '**/lib/**')),
            ProcessorKind.HTML: MinifyConfig(enabled=True, extensions=('.html',)),
            ProcessorKind.CSS: MinifyConfig(enabled=False, extensions=('.css',)),
            ProcessorKind.CLEANUP: CleanupConfig(enabled=True, patterns=('**/*.map',)),
            ProcessorKind.GZIP: CompressionConfig(enabled=True, algorithm='gzip', min_size=0,
                                                  extensions=('.js', '.css', '.html')),
            ProcessorKind.BROTLI: CompressionConfig(enabled=False, algorithm='brotli', level=11),
        },
        reporting=ReportingConfig(enabled=True),
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers PostBuild attached so each test logs to its own streams."""
    yield
    logger = logging.getLogger('Postbuild')
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def in_temp_cwd(temp_dir):
    """Run the test with temp_dir as the working directory."""
    previous = os.getcwd()
    os.chdir(temp_dir)
    yield temp_dir
    os.chdir(previous)
