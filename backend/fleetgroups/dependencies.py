from fleetgroups.core.database import SessionLocal


async def get_db():
    async with SessionLocal() as session:
        yield session


def get_session_factory():
    # Las tareas en segundo plano abren su propia sesión: la de la petición ya está cerrada
    return SessionLocal
