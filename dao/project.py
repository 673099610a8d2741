from typing import List
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.project import Project
from utils.errors import AlreadyExistsError, NotFoundError, ValidationError

_EDITABLE = ("name", "address", "is_active")


def list_projects(active_only: bool = False) -> List[Project]:
    q = Project.query
    if active_only:
        q = q.filter_by(is_active=True)
    return q.order_by(Project.code.asc()).all()


def get_project(project_id: int) -> Project:
    p = db.session.get(Project, int(project_id))
    if not p:
        raise NotFoundError("Project", project_id)
    return p


def create_project(code: str, name: str, address: str | None = None) -> Project:
    if not (code or "").strip() or not (name or "").strip():
        raise ValidationError("Mã và tên dự án là bắt buộc.")
    if Project.query.filter_by(code=code.strip()).first():
        raise AlreadyExistsError("Mã dự án đã tồn tại.", code=code.strip())
    p = Project(code=code.strip(), name=name.strip(), address=address)
    db.session.add(p)
    _commit()
    return p


def update_project(project_id: int, **fields) -> Project:
    p = get_project(project_id)
    for k, v in fields.items():
        if k in _EDITABLE:
            setattr(p, k, v)
    _commit()
    return p


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
