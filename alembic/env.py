from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from config import Config
from configs import db
import db.models as _models  # noqa: F401  nạp toàn bộ bảng vào metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# thứ tự ưu tiên: -x db_url=... > DATABASE_URL (.env) > sqlite mặc định của Config
db_url = context.get_x_argument(as_dictionary=True).get("db_url") or Config.SQLALCHEMY_DATABASE_URI
config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))

target_metadata = db.metadata

CONFIGURE_KW = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "compare_server_default": True,
    # sqlite không ALTER được constraint
    "render_as_batch": db_url.startswith("sqlite"),
}


def run_migrations_offline() -> None:
    context.configure(
        url=db_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **CONFIGURE_KW,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(connection=connection, **CONFIGURE_KW)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
