from fastapi import APIRouter

from app.schemas.timetable import FacultyWorkloadOut, WorkloadReport, WorkloadRequest
from app.services.workload import faculty_workload, workload_summary

router = APIRouter()


@router.post("/workload", response_model=WorkloadReport)
def compute_workload(payload: WorkloadRequest) -> WorkloadReport:
    roster = payload.roster.to_roster()
    entries = [item.to_domain() for item in payload.entries]
    if payload.faculty_id:
        workloads = [faculty_workload(roster, entries, payload.faculty_id)]
    else:
        workloads = workload_summary(roster, entries)
    return WorkloadReport(workloads=[FacultyWorkloadOut.from_domain(item) for item in workloads])
