"""
System-level tests for the DentalCare application.

These tests walk through complete front-office sessions: signing in,
registering and finding patients in the directory, running the examination
wizard to completion and reading the results back. They verify the state of the
store after each sequence of operations.
"""
from dentalcare.registry import DirectoryView
from dentalcare.storage import EXAMINATIONS, PATIENTS

from conftest import FIXED_NOW, build_patient_records


def test_directory_search_returns_to_first_page(service):
    """
    Tests the directory scenario: page three of 24 patients, then a search narrowing to two.
    """
    records = build_patient_records(24)
    records[4]['lastName'] = 'Kowalski'
    records[17]['lastName'] = 'Kowalski'
    service.store.save(PATIENTS, records)

    view = DirectoryView(service.registry.initialize(), page_size=service.settings.page_size)
    assert view.total_pages == 3
    view.next_page()
    view.next_page()
    assert view.current_page == 3
    assert [p.patient_id for p in view.page_items] == ['PAT-100021', 'PAT-100022', 'PAT-100023', 'PAT-100024']

    view.set_search_term("Kowalski")
    assert view.current_page == 1
    assert [p.patient_id for p in view.page_items] == ['PAT-100005', 'PAT-100018']
    assert view.summary() == "Showing 2 of 2 patients"

    view.set_search_term("")
    assert len(view.filtered) == 24


def test_examination_commit_appends_exact_draft(service):
    """
    Tests that completing the wizard appends exactly one record carrying the draft's values.
    """
    records = build_patient_records(1)
    records[0]['id'] = 'PAT-000001'
    service.store.save(PATIENTS, records)
    service.store.save(EXAMINATIONS, [{'patientId': 'PAT-000001', 'date': '2024-01-02T09:00:00'}])
    before = len(service.store.load(EXAMINATIONS))

    workflow = service.start_examination('PAT-000001')
    workflow.set_field('chiefComplaint', "Broken molar")
    workflow.set_field('painLevel', 8)
    workflow.set_field('bloodPressure', "130/85")
    assert workflow.next() is None

    workflow.set_field('isDiabetic', True)
    workflow.set_field('hba1c', "6.9")
    workflow.set_field('hasAsthma', True)
    workflow.set_field('allergies', "Penicillin")
    assert workflow.next() is None

    workflow.set_field('oralExamination', "Fractured lower left molar")
    workflow.attach_images(['front.jpg', 'side.jpg'], 'intraoral')
    workflow.attach_image('bitewing.png', 'xray')
    draft = workflow.draft.to_dict()
    record = workflow.next()

    stored = service.store.load(EXAMINATIONS)
    assert len(stored) == before + 1
    assert stored[-1]['date'] == FIXED_NOW.isoformat()
    assert {key: value for key, value in stored[-1].items() if key != 'date'} == draft
    assert stored[-1]['images'] == [
        {'file': 'front.jpg', 'type': 'intraoral'},
        {'file': 'side.jpg', 'type': 'intraoral'},
        {'file': 'bitewing.png', 'type': 'xray'},
    ]
    assert service.latest_examination('PAT-000001').to_dict() == record.to_dict()


def test_front_office_session(service):
    """
    Tests a full session from login to logout.

    This covers: login, registering a new patient, finding them through search,
    a complete examination with the diabetic fields hidden again before commit,
    the dashboard counters, and logout.
    """
    assert service.session.login("dr.lee@clinic.example", "password1") == "dr.lee"
    patients = service.registry.initialize()
    assert len(patients) == 4

    patient = service.registry.create({
        'firstName': 'Nadia', 'lastName': 'Haddad', 'phone': '+1-555-0999',
        'gender': 'Female', 'dateOfBirth': '1985-03-20', 'email': 'nadia@example.com',
    })
    assert patient.gender == 'female'
    assert patient.age == 39

    view = DirectoryView(service.registry.initialize())
    view.set_search_term("haddad")
    assert view.page_items == [patient]
    view.set_search_term("0999")
    assert view.page_items == [patient]

    workflow = service.start_examination(patient.patient_id)
    workflow.set_field('chiefComplaint', "Routine check-up")
    workflow.next()
    workflow.toggle_diabetic(True)
    workflow.set_field('fastingGlucose', "110")
    workflow.toggle_diabetic(False)
    workflow.next()
    record = workflow.next()
    assert workflow.committed
    assert record.is_diabetic is False
    assert record.fasting_glucose == "110"

    stats = service.dashboard_stats()
    assert stats['totalPatients'] == 5
    assert stats['examinationsToday'] == 1
    assert stats['activeCases'] == 1

    assert [r.chief_complaint for r in service.examinations_for(patient.patient_id)] == ["Routine check-up"]

    service.session.logout()
    assert not service.session.is_logged_in
    assert len(service.registry.initialize()) == 5
