import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from dashboard.decorators import json_login_required, view_required

from .exceptions import ChainForkError, ChainOrderError, StageNotPermitted
from .forms import StageRecordForm
from .services import InvalidInput, LatestLookup, traceability_service
from .utils import result_payload, truncate_hash

logger = logging.getLogger(__name__)

STATUS_CODES = {
    'found': 200,
    'not_found': 404,
    'invalid': 400,
    'failed': 502,
}


@json_login_required
@view_required('traceability')
@require_GET
def lookup_view(request, profile):
    """
    Look up a batch chain. Any authenticated actor may query any batch.

    ``seq`` is the client's sequence number for this search; a response whose
    seq is not newer than the last applied one is flagged ``stale`` and must be
    discarded by the caller.
    """
    seq = request.GET.get('seq')
    ticket = None
    if seq is not None:
        try:
            ticket = int(seq)
        except ValueError:
            ticket = 0
        if ticket < 1:
            return JsonResponse({'error': 'seq must be a positive integer'}, status=400)

    batch_id = request.GET.get('batch_id', '')
    slot = LatestLookup(profile)
    if ticket is None and batch_id.strip():
        # Issued before the read so the ticket follows request order
        ticket = slot.issue()

    result = traceability_service.lookup(batch_id)

    payload = result_payload(result)
    if isinstance(result, InvalidInput):
        # Rejected before any read; the last applied result stays as it was
        return JsonResponse(payload, status=STATUS_CODES[result.status])

    payload['seq'] = ticket
    payload['stale'] = not slot.offer(ticket, result)
    return JsonResponse(payload, status=STATUS_CODES[result.status])


@json_login_required
@view_required('traceability')
@require_GET
def lookup_current_view(request, profile):
    """Outcome currently applied to the caller's lookup display, and the last error."""
    return JsonResponse(LatestLookup(profile).snapshot())


@json_login_required
@view_required('traceability')
@require_POST
def record_stage_view(request, profile):
    form = StageRecordForm(request.POST, profile=profile)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors}, status=400)

    data = form.cleaned_data
    try:
        record = traceability_service.record_stage(
            actor=profile,
            batch_id=data['batch_id'],
            stage=data['stage'],
            action=data['action'],
            location=(data['district'], data['state']),
            crop=data['crop'],
            inventory=data['inventory'],
        )
    except StageNotPermitted as e:
        return JsonResponse({'error': str(e)}, status=403)
    except ChainForkError as e:
        return JsonResponse({'error': str(e)}, status=409)
    except ChainOrderError as e:
        logger.warning("Rejected out-of-order record for %s: %s", data['batch_id'], e)
        return JsonResponse({'error': str(e)}, status=409)

    return JsonResponse({
        'status': 'Success',
        'batch_id': record.batch_id,
        'stage': record.stage,
        'hash': record.hash,
        'short_hash': truncate_hash(record.hash),
        'previous_hash': record.previous_hash,
    }, status=201)


@json_login_required
@view_required('traceability')
@require_GET
def my_batches_view(request, profile):
    return JsonResponse({'batches': traceability_service.batches_for(profile)})
