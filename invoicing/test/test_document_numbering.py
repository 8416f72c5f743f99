import threading

import pytest

from invoicing import create_app, db
from invoicing.business.core.errors import ValidationError
from invoicing.business.core.unit_of_work import UnitOfWork
from invoicing.business.numbering.document_numbering import DocumentKind, DocumentNumberingService
from invoicing.data.core.tenant import Tenant


@pytest.fixture
def numbering():
    return DocumentNumberingService()


def _reserve(numbering, tenant_id, kind):
    with UnitOfWork() as uow:
        return numbering.next_number(uow, tenant_id, kind)


def test_first_number_is_one_and_sequence_is_gap_free(seed, numbering):
    numbers = [_reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) for _ in range(5)]
    assert numbers == [1, 2, 3, 4, 5]


def test_kinds_and_tenants_have_independent_sequences(seed, numbering):
    assert _reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) == 1
    assert _reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) == 2
    assert _reserve(numbering, seed.tenant_id, DocumentKind.ORDER) == 1
    assert _reserve(numbering, seed.other_tenant_id, DocumentKind.INVOICE) == 1
    assert numbering.peek(db.session, seed.tenant_id, DocumentKind.INVOICE) == 2


def test_rolled_back_reservation_is_reused(seed, numbering):
    with pytest.raises(RuntimeError):
        with UnitOfWork() as uow:
            assert numbering.next_number(uow, seed.tenant_id, DocumentKind.ORDER) == 1
            raise RuntimeError("abort")
    assert _reserve(numbering, seed.tenant_id, DocumentKind.ORDER) == 1


def test_explicit_number_raises_but_never_lowers_counter(seed, numbering):
    assert _reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) == 1
    with UnitOfWork() as uow:
        numbering.record_explicit(uow, seed.tenant_id, DocumentKind.INVOICE, 7)
    assert _reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) == 8

    with UnitOfWork() as uow:
        numbering.record_explicit(uow, seed.tenant_id, DocumentKind.INVOICE, 3)
    assert _reserve(numbering, seed.tenant_id, DocumentKind.INVOICE) == 9


def test_explicit_number_seeds_missing_counter(seed, numbering):
    with UnitOfWork() as uow:
        numbering.record_explicit(uow, seed.other_tenant_id, DocumentKind.ORDER, 4)
    assert numbering.peek(db.session, seed.other_tenant_id, DocumentKind.ORDER) == 4
    assert _reserve(numbering, seed.other_tenant_id, DocumentKind.ORDER) == 5


def test_unknown_kind(seed, numbering):
    with pytest.raises(ValidationError):
        _reserve(numbering, seed.tenant_id, 'QUOTE')


def test_concurrent_reservations_are_unique(tmp_path):
    file_app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'numbering.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30, 'check_same_thread': False}},
        'RATELIMIT_ENABLED': False,
    })
    with file_app.app_context():
        db.create_all()
        tenant = Tenant(name='Concurrent')
        db.session.add(tenant)
        db.session.commit()
        tenant_id = tenant.id

    numbering = DocumentNumberingService()
    results = []
    failures = []

    def worker():
        try:
            with file_app.app_context():
                for _ in range(5):
                    results.append(_reserve(numbering, tenant_id, DocumentKind.INVOICE))
                db.session.remove()
        except Exception as e:  # surfaced through the failures list
            failures.append(e)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert failures == []
    assert sorted(results) == list(range(1, 31))
