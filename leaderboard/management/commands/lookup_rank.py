"""Look up a handle from the command line.

Runs the same pipeline as the HTTP endpoint. With ``--file`` the engine runs
on a saved copy of the page instead, which is the quickest way to check why
a handle is not found after the source site changed its layout.
"""

from __future__ import annotations

import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from leaderboard.errors import UpstreamUnavailable
from leaderboard.extraction.config import load_config
from leaderboard.extraction.engine import extract_with_diagnostics
from leaderboard.extraction.loader import load_document
from leaderboard.extraction.text import normalize_identifier
from leaderboard.services import build_payload, engine_config, fetch_page


class Command(BaseCommand):
    help = 'Print the rank and score a handle holds on the leaderboard page.'

    def add_arguments(self, parser) -> None:
        parser.add_argument('handle', help='Handle to look up, with or without a leading @.')
        parser.add_argument('--url', help='Leaderboard page to fetch instead of LEADERBOARD_SOURCE_URL.')
        parser.add_argument('--file', help='Read the page from a saved HTML or JSON file.')
        parser.add_argument('--config', help='YAML file overriding the engine defaults.')

    def handle(self, *args, **options) -> None:
        identifier = normalize_identifier(options['handle'])
        if not identifier:
            raise CommandError('Handle is required')

        config = load_config(options['config']) if options.get('config') else engine_config()

        if options.get('file'):
            path = Path(options['file'])
            if not path.exists():
                raise CommandError(f'No such file: {path}')
            body, content_type = path.read_bytes(), ''
            if path.suffix.lower() == '.json':
                content_type = 'application/json'
        else:
            url = options.get('url') or settings.LEADERBOARD_SOURCE_URL
            try:
                page = fetch_page(url, timeout=settings.LEADERBOARD_FETCH_TIMEOUT)
            except UpstreamUnavailable as exc:
                raise CommandError(f'Failed to access target site: {exc}') from exc
            body, content_type = page.body, page.content_type

        document = load_document(body, content_type, config)
        if not document.loaded:
            raise CommandError('The page could not be loaded.')

        record, warnings = extract_with_diagnostics(document, identifier, config)
        self.stdout.write(json.dumps(build_payload(record, config), indent=2))
        if record.found:
            self.stderr.write(f'Matched by the {record.strategy} strategy.')
        for warning in warnings:
            self.stderr.write(self.style.WARNING(warning))
