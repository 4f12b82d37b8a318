from freightmatch.db.enums import Role
from freightmatch.services.chat import filter_message
from freightmatch.services.client_ids import next_client_id
from freightmatch.services.phone import format_phone_number, mask_phone_number
from freightmatch.services.references import next_reference_id


def test_client_ids_skip_values_already_taken(db, make_user):
    make_user(Role.TRANSPORTEUR, client_id="C-0002")
    first = next_client_id(db)
    second = next_client_id(db)
    assert first == "C-0001"
    assert second == "C-0003"


def test_client_ids_are_distinct_for_new_clients(make_user):
    ids = {make_user(Role.CLIENT).client_id for _ in range(5)}
    assert len(ids) == 5
    assert all(i.startswith("C-") for i in ids)


def test_first_reference_id_of_the_year(db):
    ref = next_reference_id(db)
    assert ref.startswith("CMD-")
    assert ref.endswith("00001")


def test_format_phone_number():
    assert format_phone_number("0612345678") == "212612345678"
    assert format_phone_number("+212 612-345-678") == "212612345678"
    assert format_phone_number("612345678") == "212612345678"


def test_mask_phone_number():
    assert mask_phone_number("+212664373534") == "+2126•••••534"
    assert mask_phone_number("1234") == "1234"
    assert mask_phone_number(None) == ""


def test_filter_message_masks_contact_details():
    filtered = filter_message("Appelle moi au 06 12 34 56 78 ou écris à a.b@mail.com, voir https://x.ma/p")
    assert "06 12" not in filtered
    assert "a.b@mail.com" not in filtered
    assert "https://" not in filtered
    assert filtered.startswith("Appelle moi au ***")


def test_filter_message_keeps_plain_text():
    assert filter_message("Le camion arrive à 9h") == "Le camion arrive à 9h"
    assert filter_message(None) is None
