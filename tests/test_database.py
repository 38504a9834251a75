# tests/test_database.py
from storefront.database import with_sslmode


def test_sslmode_appended():
    assert with_sslmode("postgresql://u:p@db:5432/shop") == "postgresql://u:p@db:5432/shop?sslmode=require"
    assert with_sslmode("postgresql://db/shop?application_name=api") == (
        "postgresql://db/shop?application_name=api&sslmode=require"
    )


def test_existing_sslmode_kept():
    assert with_sslmode("postgresql://db/shop?sslmode=disable") == "postgresql://db/shop?sslmode=disable"
