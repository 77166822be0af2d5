# gatehouse/routers/directory.py
"""
Admin directory: staff users, employees (people visitors come to see) and
contractor companies. Lists are served from live views; changes are
submitted without waiting and show up in the list once committed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from gatehouse.dependencies import get_auth_context, get_backend, view_rows
from gatehouse.schemas.directory import (
    CompanyCreate,
    CompanyOut,
    PersonCreate,
    PersonOut,
    PersonUpdate,
    UserCreate,
    UserOut,
    UserUpdate,
)
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import AuthContext, check_access
from gatehouse.services.backend import Backend
from gatehouse.services.directory_service import (
    build_company_record,
    build_person_record,
    build_user_record,
)

router = APIRouter()


def _list(backend: Backend, auth: Optional[AuthContext], collection: str) -> list[dict]:
    check_access(auth, collection, "list")
    return view_rows(backend.live_views.view(collection))


def _submitted(doc_id: Optional[str] = None) -> dict:
    result = {"status": "submitted"}
    if doc_id:
        result["id"] = doc_id
    return result


# ── Users ────────────────────────────────────────────────────────────────────
@router.get("/users", response_model=list[UserOut], summary="Staff accounts")
def list_users(backend: Backend = Depends(get_backend), auth: Optional[AuthContext] = Depends(get_auth_context)):
    return _list(backend, auth, names.USERS)


@router.post("/users", status_code=status.HTTP_202_ACCEPTED, summary="Add a staff account")
async def add_user(body: UserCreate, backend: Backend = Depends(get_backend),
                   auth: Optional[AuthContext] = Depends(get_auth_context)):
    record = build_user_record(body.first_name, body.surname, body.role, body.email_username, body.email_domain)
    backend.directory.create(names.USERS, record, auth)
    return {**_submitted(), "email": record["email"]}


@router.put("/users/{user_id}", status_code=status.HTTP_202_ACCEPTED, summary="Edit a staff account")
async def edit_user(user_id: str, body: UserUpdate, backend: Backend = Depends(get_backend),
                    auth: Optional[AuthContext] = Depends(get_auth_context)):
    record = build_user_record(body.first_name, body.surname, body.role, body.email_username, body.email_domain)
    backend.directory.edit(names.USERS, user_id, record, auth)
    return _submitted(user_id)


@router.delete("/users/{user_id}", status_code=status.HTTP_202_ACCEPTED, summary="Remove a staff account")
async def remove_user(user_id: str, backend: Backend = Depends(get_backend),
                      auth: Optional[AuthContext] = Depends(get_auth_context)):
    backend.directory.remove(names.USERS, user_id, auth)
    return _submitted(user_id)


# ── Employees ────────────────────────────────────────────────────────────────
@router.get("/employees", response_model=list[PersonOut], summary="Employees visitors can ask for")
def list_employees(backend: Backend = Depends(get_backend),
                   auth: Optional[AuthContext] = Depends(get_auth_context)):
    return _list(backend, auth, names.EMPLOYEES)


@router.post("/employees", status_code=status.HTTP_202_ACCEPTED, summary="Add an employee")
async def add_employee(body: PersonCreate, backend: Backend = Depends(get_backend),
                       auth: Optional[AuthContext] = Depends(get_auth_context)):
    record = build_person_record(body.first_name, body.surname, body.email_username, body.email_domain)
    backend.directory.create(names.EMPLOYEES, record, auth)
    return {**_submitted(), "email": record["email"]}


@router.put("/employees/{employee_id}", status_code=status.HTTP_202_ACCEPTED, summary="Edit an employee")
async def edit_employee(employee_id: str, body: PersonUpdate, backend: Backend = Depends(get_backend),
                        auth: Optional[AuthContext] = Depends(get_auth_context)):
    record = build_person_record(body.first_name, body.surname, body.email_username, body.email_domain)
    backend.directory.edit(names.EMPLOYEES, employee_id, record, auth)
    return _submitted(employee_id)


@router.delete("/employees/{employee_id}", status_code=status.HTTP_202_ACCEPTED, summary="Remove an employee")
async def remove_employee(employee_id: str, backend: Backend = Depends(get_backend),
                          auth: Optional[AuthContext] = Depends(get_auth_context)):
    backend.directory.remove(names.EMPLOYEES, employee_id, auth)
    return _submitted(employee_id)


# ── Companies ────────────────────────────────────────────────────────────────
@router.get("/companies", response_model=list[CompanyOut], summary="Contractor companies")
def list_companies(backend: Backend = Depends(get_backend),
                   auth: Optional[AuthContext] = Depends(get_auth_context)):
    return _list(backend, auth, names.COMPANIES)


@router.post("/companies", status_code=status.HTTP_202_ACCEPTED, summary="Add a company")
async def add_company(body: CompanyCreate, backend: Backend = Depends(get_backend),
                      auth: Optional[AuthContext] = Depends(get_auth_context)):
    backend.directory.create(names.COMPANIES, build_company_record(body.name, body.contact, body.email), auth)
    return _submitted()


@router.put("/companies/{company_id}", status_code=status.HTTP_202_ACCEPTED, summary="Edit a company")
async def edit_company(company_id: str, body: CompanyCreate, backend: Backend = Depends(get_backend),
                       auth: Optional[AuthContext] = Depends(get_auth_context)):
    backend.directory.edit(names.COMPANIES, company_id,
                           build_company_record(body.name, body.contact, body.email), auth)
    return _submitted(company_id)


@router.delete("/companies/{company_id}", status_code=status.HTTP_202_ACCEPTED, summary="Remove a company")
async def remove_company(company_id: str, backend: Backend = Depends(get_backend),
                         auth: Optional[AuthContext] = Depends(get_auth_context)):
    backend.directory.remove(names.COMPANIES, company_id, auth)
    return _submitted(company_id)
