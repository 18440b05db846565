#!/usr/bin/env python3
"""
Minimal text editor with link shortening on ']'.

Type [[https://example.com/some/long/path] and the URL is replaced with a
short link as soon as the bracket goes in.

Usage:
    python link_editor.py [FILE] [--shortener NAME] [--verbose]

Keys:
    Ctrl-S  save
    Ctrl-Q  quit
"""

import argparse
import os
import sys
from typing import Optional

from prompt_toolkit import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout
from prompt_toolkit.widgets import Label, TextArea

# Add parent directories to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from link_shortener.backends import available_shorteners
from link_shortener.common.logging_config import setup_logging
from link_shortener.config import load_config
from link_shortener.handler import TriggerHandler
from link_shortener.keybindings import PromptToolkitHost, install_trigger


class LinkEditor:
    """Single-buffer editor with the link shortening trigger installed."""

    def __init__(self, path: Optional[str], shortener: Optional[str] = None, verbose: bool = False):
        """Initialize editor."""
        self.path = path
        self.config = load_config()
        self.logger = setup_logging(
            level="DEBUG" if verbose else self.config.log_level,
            log_file=self.config.log_file or "link_editor.log",
            json_format=self.config.log_json,
            console=False,
        )

        self.body = TextArea(
            text=self._load(),
            scrollbar=True,
            line_numbers=True,
            wrap_lines=True,
            focus_on_click=True,
        )
        self.status_text = f"shortener: {shortener or self.config.shortening_function}  ^S save  ^Q quit"
        self.status = Label(text=lambda: self.status_text)

        self.handler = TriggerHandler.from_config(
            PromptToolkitHost(self.body.buffer),
            self.config,
            shortening_function=shortener,
            logger=self.logger,
        )

        self.kb = KeyBindings()
        self.setup_bindings()

    def _load(self) -> str:
        if self.path and os.path.exists(self.path):
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        return ""

    def save(self) -> None:
        if not self.path:
            self.status_text = "no file name given; nothing saved"
            return
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write(self.body.text)
        self.status_text = f"saved {self.path}"
        self.logger.info(f"Saved {self.path}")

    def setup_bindings(self):
        kb = self.kb
        install_trigger(kb, self.handler)

        @kb.add('c-s')
        def _(event): self.save()

        @kb.add('c-q')
        def _(event): event.app.exit()

    def run(self) -> int:
        app = Application(
            layout=Layout(HSplit([self.body, self.status]), focused_element=self.body),
            key_bindings=self.kb,
            full_screen=True,
        )
        app.run()
        return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Text editor that shortens URLs inside [[links]]")
    parser.add_argument("path", nargs="?", help="File to edit")
    parser.add_argument(
        "--shortener",
        choices=available_shorteners(),
        help="Shortening backend (default: LINK_SHORTENER_SHORTENING_FUNCTION or tinyurl)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    editor = LinkEditor(args.path, shortener=args.shortener, verbose=args.verbose)
    return editor.run()


if __name__ == "__main__":
    sys.exit(main())
