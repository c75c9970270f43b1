"""
UI tests for the DentalCare application using Streamlit's AppTest framework.

These tests simulate user interactions with the frontend to verify that the
GUI behaves as expected. They cover the login form, the registration form,
the patient directory's search and paging, and the examination wizard.
"""
import os

from streamlit.testing.v1 import AppTest

from dentalcare.storage import EXAMINATIONS, PATIENTS

from conftest import build_patient_records


def _by_label(elements, label):
    return next(element for element in elements if element.label == label)


def test_ui_login_rejects_invalid_credentials(service):
    """
    Tests that a password shorter than six characters shows the login error and signs nobody in.
    """
    def render(svc):
        import gui as gui_module

        gui_module.show_login_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()

    _by_label(app.text_input, "Email").input("smith@clinic.example")
    _by_label(app.text_input, "Password").input("short")
    _by_label(app.button, "Sign In").click().run()

    assert any("Invalid email or password" in err.value for err in app.error)
    assert not service.session.is_logged_in


def test_ui_login_requires_both_fields(service):
    def render(svc):
        import gui as gui_module

        gui_module.show_login_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()
    _by_label(app.button, "Sign In").click().run()

    assert any("Please enter both email and password." in err.value for err in app.error)


def test_ui_login_success(service):
    """
    Tests that valid credentials store the doctor's name and route to the dashboard.
    """
    def render(svc):
        import gui as gui_module

        gui_module.show_login_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()

    _by_label(app.text_input, "Email").input("smith@clinic.example")
    _by_label(app.text_input, "Password").input("secret1")
    _by_label(app.button, "Sign In").click().run()

    assert service.session.doctor_name == "smith"
    assert app.session_state["page"] == "dashboard"


def test_ui_add_patient_validation(service):
    """
    Tests that submitting the registration form without required fields lists them and stores nothing.
    """
    def render(svc):
        import gui as gui_module

        gui_module._render_add_patient_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()

    _by_label(app.text_input, "First Name *").input("Ada")
    _by_label(app.button, "Add Patient").click().run()

    assert any("Please fill in all required fields: Last Name, Phone Number." in err.value for err in app.error)
    assert service.store.load(PATIENTS) == []


def test_ui_add_patient_success(service):
    """
    Tests that a valid registration stores the patient and sends the user to the directory.
    """
    def render(svc):
        import gui as gui_module

        gui_module._render_add_patient_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.session_state["page"] = "add_patient"
    app.run()

    _by_label(app.text_input, "First Name *").input("Ada")
    _by_label(app.text_input, "Last Name *").input("Lovelace")
    _by_label(app.text_input, "Phone Number *").input("555-0100")
    _by_label(app.button, "Add Patient").click().run()

    stored = service.store.load(PATIENTS)
    assert [record['lastName'] for record in stored] == ["Lovelace"]
    assert app.session_state["page"] == "patients"


def test_ui_add_patient_with_unreadable_patient_list(service, settings):
    """
    Tests that the registration form reports an unreadable patient list and keeps the file intact.
    """
    path = os.path.join(settings.data_dir, "patients.json")
    with open(path, "w") as f:
        f.write("garbage-recoverable")

    def render(svc):
        import gui as gui_module

        gui_module._render_add_patient_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()

    _by_label(app.text_input, "First Name *").input("Ada")
    _by_label(app.text_input, "Last Name *").input("Lovelace")
    _by_label(app.text_input, "Phone Number *").input("555-0100")
    _by_label(app.button, "Add Patient").click().run()

    assert any("the new patient was not saved" in err.value for err in app.error)
    with open(path) as f:
        assert f.read() == "garbage-recoverable"


def test_ui_directory_warns_about_unreadable_patient_list(service, settings):
    with open(os.path.join(settings.data_dir, "patients.json"), "w") as f:
        f.write("garbage-recoverable")

    def render(svc):
        import gui as gui_module

        gui_module._render_view_patients_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()

    assert any("Stored patients could not be read" in warning.value for warning in app.warning)


def test_ui_directory_paging_and_search(service):
    """
    Tests the directory: paging forward, then a search that returns to the first page.
    """
    records = build_patient_records(24)
    records[4]['lastName'] = 'Kowalski'
    records[17]['lastName'] = 'Kowalski'
    service.store.save(PATIENTS, records)

    def render(svc):
        import gui as gui_module

        gui_module._render_view_patients_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()
    assert any(caption.value == "Showing 10 of 24 patients" for caption in app.caption)
    assert any(caption.value == "Page 1 of 3" for caption in app.caption)

    app.button(key="directory_next").click().run()
    assert app.session_state["directory_page"] == 2
    assert any(caption.value == "Page 2 of 3" for caption in app.caption)

    app.text_input(key="patient_search").input("Kowalski").run()
    assert app.session_state["directory_page"] == 1
    assert any(caption.value == "Showing 2 of 2 patients" for caption in app.caption)


def test_ui_directory_empty_search(service):
    service.registry.initialize()

    def render(svc):
        import gui as gui_module

        gui_module._render_view_patients_page(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.run()
    app.text_input(key="patient_search").input("nobody-here").run()

    assert any("No patients found." in info.value for info in app.info)


def test_ui_examination_wizard_commits_record(service):
    """
    Tests the wizard end to end: fill step one, advance twice, and complete the examination.
    """
    service.registry.initialize()

    def render(svc):
        import gui as gui_module

        gui_module.show_main_app(svc)

    app = AppTest.from_function(render, args=(service,), default_timeout=15)
    app.session_state["page"] = "examination"
    app.session_state["selected_patient_id"] = "PAT-001"
    app.run()
    assert any("Step 1: Chief Complaint & Vitals" in md.value for md in app.markdown)

    app.text_area(key="exam_chiefComplaint").input("Loose filling").run()
    app.button(key="exam_next").click().run()
    assert app.session_state["workflow"].step == 2
    app.button(key="exam_next").click().run()
    assert app.session_state["workflow"].step == 3
    app.button(key="exam_next").click().run()

    stored = service.store.load(EXAMINATIONS)
    assert len(stored) == 1
    assert stored[0]['patientId'] == "PAT-001"
    assert stored[0]['chiefComplaint'] == "Loose filling"
    assert app.session_state["page"] == "findings"
