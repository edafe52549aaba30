"""Tests for the JavaScript, HTML and CSS minification processors."""

import pytest
import os
from pathlib import Path
from unittest.mock import patch

import rjsmin

from conftest import SAMPLE_CSS, SAMPLE_HTML, SAMPLE_JS, write_file
from postbuild_pkg.config import MinifyConfig
from postbuild_pkg.file_filter import FileFilter
from postbuild_pkg.minify import _SCRIPT_RE, CSSProcessor, HTMLProcessor, JavaScriptProcessor


def script_match(markup):
    return _SCRIPT_RE.search(markup)


def padded_js(size):
    """Valid JavaScript of exactly ``size`` bytes, padded with a block comment."""
    code = "function add(a, b) {\n    return a + b;\n}\n"
    return code + "/*" + "x" * (size - len(code) - 4) + "*/"


class TestJavaScriptProcessor:
    """Test cases for JavaScriptProcessor."""

    def test_minifies_single_file(self, temp_dir, js_config, file_filter):
        dist = Path(temp_dir) / 'dist'
        app = write_file(dist / 'app.js', padded_js(500))
        assert os.path.getsize(app) == 500

        stats = JavaScriptProcessor(js_config, file_filter).process(str(dist))

        assert stats.file_count == 1
        assert stats.sizes.original_size == 500
        assert os.path.getsize(app) < 500
        assert stats.sizes.compressed_size == os.path.getsize(app)
        assert stats.errors == []
        assert Path(app).read_text().startswith('function add(a,b){return a+b;}')

    def test_disabled_is_noop(self, dist_dir, file_filter):
        app = os.path.join(dist_dir, 'assets', 'app.js')
        before = Path(app).read_text()

        stats = JavaScriptProcessor(MinifyConfig(enabled=False, extensions=('.js',)), file_filter).process(dist_dir)

        assert stats.file_count == 0
        assert stats.sizes.original_size == 0
        assert stats.sizes.compressed_size == 0
        assert Path(app).read_text() == before

    def test_ignore_patterns_respected(self, dist_dir, js_config):
        vendor = os.path.join(dist_dir, 'assets', 'vendor.min.js')
        processor = JavaScriptProcessor(js_config, FileFilter(['**/.*']))

        stats = processor.process(dist_dir)

        # app.js and lib/tracker.js; vendor.min.js and the hidden dir are skipped
        assert stats.file_count == 2
        assert Path(vendor).read_text() == 'var a=1;'
        assert Path(dist_dir, '.hidden', 'secret.js').read_text() == SAMPLE_JS

    def test_error_isolation(self, temp_dir, js_config, file_filter):
        dist = Path(temp_dir) / 'dist'
        paths = []
        for i in range(1, 6):
            paths.append(write_file(dist / f'file{i}.js', f"var name = 'file{i}';\n" + SAMPLE_JS))

        def flaky_minify(self, content):
            if 'file3' in content:
                raise RuntimeError('unexpected token')
            return rjsmin.jsmin(content)

        with patch.object(JavaScriptProcessor, 'minify', autospec=True, side_effect=flaky_minify):
            stats = JavaScriptProcessor(js_config, file_filter).process(str(dist))

        assert stats.file_count == 4
        assert len(stats.errors) == 1
        assert 'file3.js' in stats.errors[0]
        assert 'unexpected token' in stats.errors[0]
        for i, path in enumerate(paths, start=1):
            content = Path(path).read_text()
            if i == 3:
                assert content.startswith("var name = 'file3';\n")
            else:
                assert not content.startswith("var name = ")
                assert f"'file{i}'" in content

    def test_empty_output_is_an_error(self, temp_dir, js_config, file_filter):
        dist = Path(temp_dir) / 'dist'
        only_comment = write_file(dist / 'notes.js', '// nothing to see here\n')

        stats = JavaScriptProcessor(js_config, file_filter).process(str(dist))

        assert stats.file_count == 0
        assert len(stats.errors) == 1
        assert 'No output' in stats.errors[0]
        assert Path(only_comment).read_text() == '// nothing to see here\n'

    def test_undecodable_file_is_recorded(self, temp_dir, js_config, file_filter):
        dist = Path(temp_dir) / 'dist'
        write_file(dist / 'binary.js', b'\xff\xfe\x00var')
        write_file(dist / 'ok.js', SAMPLE_JS)

        stats = JavaScriptProcessor(js_config, file_filter).process(str(dist))

        assert stats.file_count == 1
        assert len(stats.errors) == 1
        assert 'binary.js' in stats.errors[0]

    def test_minifier_options_forwarded(self, temp_dir, file_filter):
        dist = Path(temp_dir) / 'dist'
        app = write_file(dist / 'app.js', "/*! license */\nvar  a = 1;\n")
        config = MinifyConfig(enabled=True, extensions=('.js',), minifier_options={'keep_bang_comments': True})

        JavaScriptProcessor(config, file_filter).process(str(dist))

        assert '/*! license */' in Path(app).read_text()

    @pytest.mark.parametrize('source', [
        SAMPLE_JS,
        "var a = 1;",
        "if (x) {\n  y();\n} else {\n  z();\n}\n",
        "const s = 'a  string   with   spaces';\n",
        "x = a / b / c; // divide\n",
        "var re = /ab+c/g;  \n",
    ])
    def test_never_expands_valid_input(self, temp_dir, js_config, file_filter, source):
        dist = Path(temp_dir) / 'dist'
        app = write_file(dist / 'app.js', source)

        stats = JavaScriptProcessor(js_config, file_filter).process(str(dist))

        assert stats.file_count == 1
        assert os.path.getsize(app) <= len(source.encode('utf-8'))


class TestHTMLProcessor:
    """Test cases for HTMLProcessor."""

    def test_minifies_documents(self, dist_dir, html_config, file_filter):
        index = os.path.join(dist_dir, 'index.html')

        stats = HTMLProcessor(html_config, file_filter).process(dist_dir)

        assert stats.file_count == 2
        assert stats.sizes.original_size == 2 * len(SAMPLE_HTML.encode('utf-8'))
        assert stats.sizes.compressed_size < stats.sizes.original_size
        result = Path(index).read_text()
        assert '<!-- page metadata -->' not in result
        assert '<title>' in result

    def test_inline_script_and_style_minified(self, dist_dir, html_config, file_filter):
        index = os.path.join(dist_dir, 'index.html')

        HTMLProcessor(html_config, file_filter).process(dist_dir)

        result = Path(index).read_text()
        assert 'inline comment' not in result
        assert 'answer=42' in result
        assert 'margin:0' in result

    def test_inline_minification_can_be_disabled(self, dist_dir, file_filter):
        index = os.path.join(dist_dir, 'index.html')
        config = MinifyConfig(enabled=True, extensions=('.html',),
                              minifier_options={'minify_js': False, 'minify_css': False})

        HTMLProcessor(config, file_filter).process(dist_dir)

        assert 'inline comment' in Path(index).read_text()

    def test_external_and_non_js_scripts_untouched(self, html_config, file_filter):
        processor = HTMLProcessor(html_config, file_filter)
        template = '<script type="text/template">  {{ name }}  // keep </script>'
        external = '<script src="app.js"></script>'

        assert processor._minify_script(script_match(template)) == template
        assert processor._minify_script(script_match(external)) == external

    def test_minifier_exception_recorded(self, dist_dir, html_config, file_filter):
        with patch('postbuild_pkg.minify.htmlmin.minify', side_effect=ValueError('bad markup')):
            stats = HTMLProcessor(html_config, file_filter).process(dist_dir)

        assert stats.file_count == 0
        assert len(stats.errors) == 2
        assert all('bad markup' in error for error in stats.errors)


class TestCSSProcessor:
    """Test cases for CSSProcessor."""

    def test_minifies_stylesheets(self, dist_dir, css_config, file_filter):
        style = os.path.join(dist_dir, 'assets', 'style.css')

        stats = CSSProcessor(css_config, file_filter).process(dist_dir)

        assert stats.file_count == 1
        result = Path(style).read_text()
        assert '/* layout */' not in result
        assert len(result) < len(SAMPLE_CSS)
        assert '.header{' in result
