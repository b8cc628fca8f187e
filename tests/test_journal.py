import pytest

from backoffice.core.errors import AlreadyCentralized, VoucherNotFound
from backoffice.core.schemas import Employee, VoucherEntry, VoucherType
from backoffice.db.models import VoucherRecord
from backoffice.db.session import init_db, make_engine, make_session_factory
from backoffice.ledger.centralization import centralize_payroll
from backoffice.ledger.journal import JournalRepository
from backoffice.ledger.voucher import new_voucher
from backoffice.payroll.bulk_processor import run_payroll

@pytest.fixture
def journal(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'journal.db'}")
    init_db(engine)
    return JournalRepository(make_session_factory(engine))

def _sale():
    return new_voucher("2024-05-15", "Venta Factura N° 1", [
        VoucherEntry(1101, debit=119_000), VoucherEntry(4101, credit=100_000), VoucherEntry(2105, credit=19_000),
    ], VoucherType.INGRESO)

def test_append_and_get(journal):
    vid = journal.append(_sale())
    stored = journal.get(vid)
    assert stored == _sale()
    assert stored.entries[0].account_id == 1101

def test_record_lines_balance(journal):
    vid = journal.append(_sale())
    db = journal._session()
    record = db.get(VoucherRecord, vid)
    assert record.is_balanced()
    assert len(record.lines) == 3
    db.close()

def test_get_unknown(journal):
    with pytest.raises(VoucherNotFound):
        journal.get(404)

def test_reverse_is_appended(journal):
    vid = journal.append(_sale())
    rid = journal.reverse(vid, "2024-05-31")
    reversal = journal.get(rid)
    assert reversal.reverses == "Venta Factura N° 1"
    assert reversal.entries[0].credit == 119_000
    assert len(journal.load_vouchers("2024-05")) == 2
    assert journal.load_vouchers("2024-06") == []

def test_second_centralization_refused(journal, parameters, brackets, institutions, directory):
    emp = Employee(id=1, tax_id_raw="11.111.111-1", base_salary=800_000,
                   pension_fund_id=1, health_provider_id=2)
    slips = run_payroll([emp], "2024-05", parameters, brackets, institutions).succeeded
    journal.append_centralization(centralize_payroll(slips, "2024-05", directory))
    with pytest.raises(AlreadyCentralized) as exc:
        journal.append_centralization(centralize_payroll(slips, "2024-05", directory))
    assert exc.value.description == "Centralizacion Remuneraciones 2024-05"
    assert len(journal.load_vouchers()) == 1

def test_string_account_ids_round_trip(journal):
    v = new_voucher("2024-05-02", "Traspaso interno", [
        VoucherEntry("0101", debit=5), VoucherEntry("2101", credit=5),
    ])
    assert journal.get(journal.append(v)) == v
