"""
Create a teacher account from the command line.

Needs a file-backed DATABASE_URL (e.g. sqlite+pysqlite:///gradebook.db);
with the default in-memory database the account is gone when the script exits.
"""
from config import get_settings
from database import UserRole
from tools import create_app_state, upsert_profile

state = create_app_state(get_settings())
with state.session() as db:
    u = upsert_profile(
        db,
        UserRole.TEACHER,
        display_name="API Teacher",
        login_name="apiteacher",
        secret="apiteacher",
        subjects=["Math", "Physics"],
    )
    print("Created", u, u.teacher.subjects)
