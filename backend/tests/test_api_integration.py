import copy


def generate(client, roster, **extra):
    body = {"roster": roster, "classId": "CSE-A", "semester": "2026-odd", **extra}
    return client.post("/api/timetable/generate", json=body)


def scarce(roster):
    roster = copy.deepcopy(roster)
    roster["subjects"] = [{"id": "DS", "name": "Data Structures", "department": "CSE", "weeklyPeriods": 3}]
    roster["faculty"] = [
        {
            "id": "f-ds",
            "name": "Prof Lists",
            "eligibleSubjects": ["DS"],
            "maxWeeklyLoad": 10,
            "availableSlotIds": ["mon-1", "tue-1"],
        }
    ]
    roster["curriculum"] = {"CSE-A": {"DS": None}}
    return roster


def test_generate_timetable(client, cse_a_payload):
    response = generate(client, cse_a_payload, mode="strict")
    assert response.status_code == 200
    data = response.json()

    timetable = data["timetable"]
    assert timetable["classId"] == "CSE-A"
    assert timetable["status"] == "complete"
    assert timetable["conflicts"] == []
    assert data["residualConflicts"] == []
    assert [(entry["subjectId"], entry["slotId"]) for entry in timetable["entries"]] == [
        ("ALG", "mon-1"),
        ("DS", "tue-1"),
        ("DS", "wed-1"),
    ]
    assert timetable["entries"][0]["id"] == "CSE-A:ALG:mon-1"


def test_generate_strict_unsatisfiable_returns_409(client, cse_a_payload):
    response = generate(client, scarce(cse_a_payload), mode="strict")
    assert response.status_code == 409
    data = response.json()
    assert "DS" in data["message"]
    assert data["details"]["subject_id"] == "DS"
    assert data["details"]["placed"] == 2
    assert data["details"]["required"] == 3


def test_generate_best_effort_returns_residual_conflicts(client, cse_a_payload):
    response = generate(client, scarce(cse_a_payload), mode="best-effort")
    assert response.status_code == 200
    data = response.json()
    assert data["timetable"]["status"] == "exhausted"
    assert len(data["timetable"]["entries"]) == 2
    assert [(item["kind"], item["subjectId"], item["resolved"]) for item in data["residualConflicts"]] == [
        ("unplaced", "DS", False)
    ]


def test_generate_with_override_and_preference(client, cse_a_payload):
    response = generate(
        client,
        cse_a_payload,
        overrides=[{"subjectId": "ALG", "slotId": "fri-1", "facultyId": "f-alg", "roomId": "R101"}],
        preferences=[{"rule": "avoid_days", "facultyId": "f-ds", "days": ["Tuesday"]}],
    )
    assert response.status_code == 200
    data = response.json()
    assert ("ALG", "fri-1") in [(entry["subjectId"], entry["slotId"]) for entry in data["timetable"]["entries"]]
    assert [(item["kind"], item["severity"]) for item in data["timetable"]["conflicts"]] == [("preference", "low")]
    assert data["residualConflicts"] == []


def test_invalid_override_returns_422_with_message(client, cse_a_payload):
    response = generate(
        client,
        cse_a_payload,
        overrides=[{"subjectId": "ALG", "slotId": "mon-1", "facultyId": "f-ds", "roomId": "R101"}],
    )
    assert response.status_code == 422
    assert "not eligible" in response.json()["message"]


def test_duplicate_ids_are_rejected(client, cse_a_payload):
    roster = copy.deepcopy(cse_a_payload)
    roster["rooms"].append({"id": "R101", "name": "Room 101 again", "capacity": 80})

    response = generate(client, roster)
    assert response.status_code == 422
    assert response.json()["details"] == {"kind": "room", "ids": ["R101"]}


def test_malformed_payload_uses_request_validation(client, cse_a_payload):
    roster = copy.deepcopy(cse_a_payload)
    roster["timeSlots"][0]["startTime"] = "9am"

    response = generate(client, roster)
    assert response.status_code == 422
    assert "detail" in response.json()


def test_preference_requires_its_arguments(client, cse_a_payload):
    response = generate(client, cse_a_payload, preferences=[{"rule": "avoid_after", "facultyId": "f-ds"}])
    assert response.status_code == 422


def test_detect_conflicts_endpoint(client, cse_a_payload):
    entries = [
        {"classId": "CSE-A", "subjectId": "DS", "facultyId": "f-ds", "roomId": "R101", "slotId": "mon-1"},
        {"classId": "CSE-A", "subjectId": "ALG", "facultyId": "f-ds", "roomId": "R101", "slotId": "mon-1"},
    ]
    response = client.post("/api/conflicts/detect", json={"roster": cse_a_payload, "entries": entries})
    assert response.status_code == 200
    data = response.json()
    assert data["hardConflicts"] == 3
    assert data["softConflicts"] == 0
    assert sorted(item["kind"] for item in data["conflicts"]) == ["class", "faculty", "room"]
    assert sorted(data["conflicts"][0]["involvedEntryIds"]) == ["CSE-A:ALG:mon-1", "CSE-A:DS:mon-1"]


def test_detect_conflicts_can_check_demand(client, cse_a_payload):
    entries = [{"classId": "CSE-A", "subjectId": "DS", "facultyId": "f-ds", "roomId": "R101", "slotId": "mon-1"}]
    response = client.post(
        "/api/conflicts/detect",
        json={"roster": cse_a_payload, "entries": entries, "checkDemand": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert sorted(item["subjectId"] for item in data["conflicts"]) == ["ALG", "DS"]
    assert {item["kind"] for item in data["conflicts"]} == {"unplaced"}


def test_workload_endpoint(client, cse_a_payload):
    generated = generate(client, cse_a_payload).json()
    response = client.post(
        "/api/timetable/workload",
        json={"roster": cse_a_payload, "entries": generated["timetable"]["entries"], "facultyId": "f-ds"},
    )
    assert response.status_code == 200
    workloads = response.json()["workloads"]
    assert len(workloads) == 1
    assert workloads[0]["facultyId"] == "f-ds"
    assert workloads[0]["totalPeriods"] == 2
    assert workloads[0]["remainingCapacity"] == 8


def test_generate_institute_endpoint(client, cse_a_payload):
    roster = copy.deepcopy(cse_a_payload)
    roster["classGroups"].append({"id": "CSE-B", "department": "CSE", "label": "CSE B", "studentCount": 40})
    roster["rooms"].append({"id": "R102", "name": "Room 102", "capacity": 60})
    roster["curriculum"]["CSE-B"] = {"DS": None, "ALG": None}

    response = client.post(
        "/api/timetable/generate-institute",
        json={"roster": roster, "semester": "2026-odd", "mode": "strict"},
    )
    assert response.status_code == 200
    data = response.json()
    assert [item["classId"] for item in data["timetables"]] == ["CSE-A", "CSE-B"]
    assert data["residualConflicts"] == []

    entries = [entry for item in data["timetables"] for entry in item["entries"]]
    assert len(entries) == 6
    faculty_slots = [(entry["facultyId"], entry["slotId"]) for entry in entries]
    room_slots = [(entry["roomId"], entry["slotId"]) for entry in entries]
    assert len(faculty_slots) == len(set(faculty_slots))
    assert len(room_slots) == len(set(room_slots))
