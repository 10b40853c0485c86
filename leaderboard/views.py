"""Django views for the leaderboard app.

The app exposes a single JSON endpoint answering "what rank and score does
this handle currently hold?". Missing input, an unreachable leaderboard
page and unexpected failures each map to their own status code; a handle
that is simply not on the page is a normal ``200`` answer.
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET

from .errors import MissingHandle, UpstreamUnavailable
from .forms import RankQueryForm
from .services import build_payload, lookup_rank

logger = logging.getLogger(__name__)


def _upstream_status(exc: UpstreamUnavailable) -> int:
    if exc.status is not None and 400 <= exc.status <= 599:
        return exc.status
    return 502


@require_GET
@never_cache
def rank(request: HttpRequest) -> JsonResponse:
    """Return the rank and score of ``?handle=`` on the leaderboard page.

    ``rank`` is a JSON integer. ``score`` is a two-decimal string such as
    ``"1234.50"`` so trailing zeros survive serialization; unresolved fields
    carry the display sentinels (``9999`` and ``"---"``).
    """

    form = RankQueryForm(request.GET)
    if not form.is_valid():
        message = form.errors.get('handle', ['Handle is required'])[0]
        return JsonResponse({'error': message}, status=400)

    try:
        record = lookup_rank(form.cleaned_data['handle'])
        payload = build_payload(record)
    except MissingHandle as exc:
        return JsonResponse({'error': str(exc)}, status=400)
    except UpstreamUnavailable as exc:
        logger.warning('Leaderboard unavailable: %s', exc)
        return JsonResponse(
            {'error': 'Failed to access target site', 'status': exc.status},
            status=_upstream_status(exc),
        )
    except Exception:
        logger.exception('Unexpected failure while looking up %r', form.cleaned_data['handle'])
        return JsonResponse({'error': 'Failed to fetch external data'}, status=500)

    return JsonResponse(payload)
