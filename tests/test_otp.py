from datetime import datetime, timedelta, timezone

from cinebook import crud, otp

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_generate_returns_six_digit_code_and_absolute_expiry():
    grant = otp.generate("a@x.com", now=NOW, length=6, ttl_minutes=10)
    assert len(grant.code) == 6
    assert grant.code.isdigit()
    assert grant.expires_at == NOW + timedelta(minutes=10)


def test_generate_is_not_constant():
    codes = {otp.generate("a@x.com", now=NOW).code for _ in range(20)}
    assert len(codes) > 1


def test_validate_without_pending_record(db):
    assert otp.validate(db, "a@x.com", "123456", now=NOW) is False


def test_validate_accepts_matching_unexpired_code(db):
    crud.upsert_pending_otp(db, "a@x.com", "123456", NOW + timedelta(minutes=10))
    db.commit()
    assert otp.validate(db, "a@x.com", "123456", now=NOW) is True


def test_validate_rejects_wrong_code(db):
    crud.upsert_pending_otp(db, "a@x.com", "123456", NOW + timedelta(minutes=10))
    db.commit()
    assert otp.validate(db, "a@x.com", "654321", now=NOW) is False


def test_validate_rejects_expired_code(db):
    crud.upsert_pending_otp(db, "a@x.com", "123456", NOW + timedelta(minutes=10))
    db.commit()
    assert otp.validate(db, "a@x.com", "123456", now=NOW + timedelta(minutes=10, seconds=1)) is False


def test_upsert_keeps_one_row_per_email(db):
    crud.upsert_pending_otp(db, "a@x.com", "111111", NOW + timedelta(minutes=10))
    crud.upsert_pending_otp(db, "a@x.com", "222222", NOW + timedelta(minutes=20))
    db.commit()
    pending = crud.get_pending_otp(db, "a@x.com")
    assert pending.otp == "222222"
    assert otp.as_utc(pending.expires_at) == NOW + timedelta(minutes=20)
    assert db.query(crud.models.PendingOtp).count() == 1


def test_consume_only_deletes_matching_code(db):
    crud.upsert_pending_otp(db, "a@x.com", "222222", NOW + timedelta(minutes=10))
    db.commit()
    assert crud.consume_pending_otp(db, "a@x.com", "111111") == 0
    assert crud.consume_pending_otp(db, "a@x.com", "222222") == 1
    db.commit()
    assert crud.get_pending_otp(db, "a@x.com") is None


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    assert otp.as_utc(naive) == NOW
