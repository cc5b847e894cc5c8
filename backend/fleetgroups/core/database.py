from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from fleetgroups.core.config import settings

# URL de conexión a la base de datos PostgreSQL con el driver asyncpg
DATABASE_URL = settings.DATABASE_URL

# Crear el motor de la base de datos
engine = create_async_engine(DATABASE_URL, echo=settings.DATABASE_ECHO)

# Crear una clase SessionLocal para cada solicitud.
# expire_on_commit=False: los objetos siguen siendo legibles tras el commit sin I/O implícito.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    class_=AsyncSession,
)

# Declarar una base para tus modelos de SQLAlchemy
Base = declarative_base()
