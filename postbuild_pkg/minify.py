"""
In-place minification of JavaScript, HTML and CSS build output.
"""

import os
import re

import csscompressor
import htmlmin
import rjsmin

from .base import BaseProcessor
from .stats import format_bytes

HTMLMIN_DEFAULTS = {
    'remove_comments': True,
    'remove_empty_space': True,
    'reduce_boolean_attributes': True,
}

_SCRIPT_RE = re.compile(r'(<script\b([^>]*)>)(.*?)(</script\s*>)', re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r'(<style\b[^>]*>)(.*?)(</style\s*>)', re.IGNORECASE | re.DOTALL)
_TYPE_ATTR_RE = re.compile(r'\btype\s*=\s*["\']?([^"\'\s>]+)', re.IGNORECASE)
_SRC_ATTR_RE = re.compile(r'\bsrc\s*=', re.IGNORECASE)
_JS_TYPES = {'text/javascript', 'application/javascript', 'text/ecmascript', 'application/ecmascript', 'module'}


class EmptyOutputError(Exception):
    """The minifier ran but produced nothing."""


class MinifyProcessor(BaseProcessor):
    """Reads each eligible file, minifies it and writes it back over the original."""

    def minify(self, content: str) -> str:
        raise NotImplementedError

    def run(self, target_dir, stats):
        self.logger.info(f"{self.label} of {self.name} files...")
        files = self.find_candidates(target_dir)
        self.logger.info(f"Found {len(files)} {self.name} files")

        for file_path in files:
            self.process_file(file_path, target_dir, stats)

        if stats.file_count:
            self.log_size_summary(stats)

    def process_file(self, file_path, target_dir, stats):
        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                content = f.read()

            result = self.minify(content)
            if not result:
                raise EmptyOutputError("No output produced by minifier")

            with open(file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(result)
        except EmptyOutputError as e:
            self.record_failure(stats, file_path, target_dir, str(e))
            return
        except (IOError, OSError, UnicodeDecodeError) as e:
            self.record_failure(stats, file_path, target_dir, str(e))
            return
        except Exception as e:
            self.record_failure(stats, file_path, target_dir, f"Minifier error: {e}")
            return

        original_size = len(content.encode('utf-8'))
        minified_size = len(result.encode('utf-8'))
        stats.sizes.original_size += original_size
        stats.sizes.compressed_size += minified_size
        stats.file_count += 1

        if self.config.is_verbose:
            percent = (original_size - minified_size) / original_size * 100 if original_size else 0
            self.logger.info(
                f"  {os.path.relpath(file_path, target_dir)} - {format_bytes(original_size)} -> "
                f"{format_bytes(minified_size)} (-{percent:.1f}%)"
            )


class JavaScriptProcessor(MinifyProcessor):
    name = 'javascript'
    label = 'JavaScript minification'

    def minify(self, content):
        return rjsmin.jsmin(content, **self.config.minifier_options)


class CSSProcessor(MinifyProcessor):
    name = 'css'
    label = 'CSS minification'

    def minify(self, content):
        return csscompressor.compress(content, **self.config.minifier_options)


class HTMLProcessor(MinifyProcessor):
    name = 'html'
    label = 'HTML minification'

    def __init__(self, config, file_filter):
        super().__init__(config, file_filter)
        options = dict(HTMLMIN_DEFAULTS)
        options.update(config.minifier_options)
        self.minify_js = bool(options.pop('minify_js', True))
        self.minify_css = bool(options.pop('minify_css', True))
        self.htmlmin_options = options

    def minify(self, content):
        if self.minify_js:
            content = _SCRIPT_RE.sub(self._minify_script, content)
        if self.minify_css:
            content = _STYLE_RE.sub(self._minify_style, content)
        return htmlmin.minify(content, **self.htmlmin_options)

    @staticmethod
    def _minify_script(match):
        open_tag, attrs, body, close_tag = match.groups()
        if _SRC_ATTR_RE.search(attrs) or not body.strip():
            return match.group(0)
        script_type = _TYPE_ATTR_RE.search(attrs)
        if script_type and script_type.group(1).lower() not in _JS_TYPES:
            return match.group(0)
        return open_tag + rjsmin.jsmin(body) + close_tag

    @staticmethod
    def _minify_style(match):
        open_tag, body, close_tag = match.groups()
        if not body.strip():
            return match.group(0)
        return open_tag + csscompressor.compress(body) + close_tag
