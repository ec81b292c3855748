"""
Module ORM Registry (``procurement_modules._orm_registry``).

Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before
``procurement_kernel.db.engine.create_tables()`` runs.
"""


def import_all_orm_models() -> None:
    """Import kernel tables and every ``procurement_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import procurement_kernel.db.sequence  # noqa: F401
    import procurement_modules.requisitions.orm  # noqa: F401
