from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone
from orders.models import IdempotencyKey


def make_key(key, expires_at):
    return IdempotencyKey.objects.create(
        key=key, scope="anon", path="/api/v1/orders/", method="POST", expires_at=expires_at
    )


@pytest.mark.django_db
def test_cleanup_deletes_only_expired_keys():
    now = timezone.now()
    make_key("old", now - timedelta(hours=1))
    make_key("fresh", now + timedelta(hours=1))

    out = StringIO()
    call_command("cleanup_idempotency", stdout=out)

    assert "Deleted 1 expired" in out.getvalue()
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["fresh"]


@pytest.mark.django_db
def test_cleanup_dry_run_keeps_keys():
    make_key("old", timezone.now() - timedelta(hours=1))

    out = StringIO()
    call_command("cleanup_idempotency", "--dry-run", stdout=out)

    assert "1 expired idempotency keys would be deleted" in out.getvalue()
    assert IdempotencyKey.objects.count() == 1
