"""
This module defines the graphical user interface (GUI) for DentalCare using Streamlit.

It includes functions for rendering every page of the front office: the login
page, the dashboard, patient registration, the patient directory with search and
pagination, the patient detail page, the three-step examination wizard and the
findings view shown after an examination is completed.

The main entry point for the UI is `show_main_app`, which renders the sidebar
and routes to the page stored in `st.session_state.page`. Pages only talk to the
core through the `DentalCareService` passed in.
"""
# dentalcare/gui.py

import datetime

import streamlit as st

from dentalcare.errors import CorruptCollectionError, NotFoundError, ValidationError, WorkflowError
from dentalcare.models import (
    IMAGE_INTRAORAL, IMAGE_XRAY, STATUS_ACTIVE, STATUS_COMPLETED, STATUS_UNDER_TREATMENT,
)
from dentalcare.registry import DirectoryView, PatientRegistry
from dentalcare.storage import STATUS_CORRUPT
from dentalcare.workflow import LAST_STEP, STEPS, pain_label, records_to_dataframe

FIELD_LABELS = {
    'firstName': 'First Name',
    'lastName': 'Last Name',
    'phone': 'Phone Number',
    'gender': 'Gender',
    'dateOfBirth': 'Date of Birth',
    'chiefComplaint': 'Chief Complaint',
}

IMAGE_FILE_TYPES = ["png", "jpg", "jpeg", "gif", "bmp", "webp", "tif", "tiff"]

GENDER_OPTIONS = ["", "male", "female", "other"]


def _navigate(page, patient_id=None):
    """Switches to another page, optionally selecting a patient, and reruns."""
    st.session_state.page = page
    if patient_id is not None:
        st.session_state.selected_patient_id = patient_id
    st.rerun()


def _flash(message, kind="success"):
    """Queues a message to show on the next page render."""
    st.session_state.flash = (kind, message)


def _show_flash():
    flash = st.session_state.pop('flash', None)
    if flash:
        kind, message = flash
        getattr(st, kind)(message)


def _format_date(timestamp_str, long=False):
    """Formats an ISO timestamp as e.g. "Jan 05, 2024" (or "January 05, 2024" when `long`)."""
    if not timestamp_str:
        return "Unknown"
    try:
        value = datetime.datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))
    except ValueError:
        return timestamp_str
    return value.strftime("%B %d, %Y" if long else "%b %d, %Y")


def _show_storage_warnings(service):
    """Warns about collections that exist but cannot be read."""
    for name, state in service.collection_health().items():
        if state == STATUS_CORRUPT:
            st.warning(f"Stored {name} could not be read and are shown as empty. "
                       "New entries are blocked until the file is restored or removed.")


def _describe_validation_error(error):
    """Turns a `ValidationError` into a readable sentence for the form."""
    parts = []
    if error.missing_fields:
        names = ", ".join(FIELD_LABELS.get(name, name) for name in error.missing_fields)
        parts.append(f"Please fill in all required fields: {names}.")
    for name, reason in error.invalid_fields.items():
        parts.append(f"{FIELD_LABELS.get(name, name)} {reason}.")
    return " ".join(parts)


# Authentication
def show_login_page(service):
    """Displays the doctor login form.

    Args:
        service: The main application service instance.
    """
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h1 style='text-align: center;'>DentalCare Pro</h1>", unsafe_allow_html=True)
        st.markdown("<p style='text-align: center;'>Sign in to manage your practice.</p>", unsafe_allow_html=True)
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In", use_container_width=True)

            if submitted:
                try:
                    with st.spinner("Signing in..."):
                        doctor_name = service.session.login(email, password)
                except ValidationError:
                    st.error("Please enter both email and password.")
                else:
                    if doctor_name:
                        st.session_state.page = 'dashboard'
                        st.rerun()
                    else:
                        st.error("Invalid email or password. Please try again.")


# Main application
def show_main_app(service):
    """
    Renders the sidebar and routes to the current page.

    Args:
        service: The main application service instance.
    """
    if 'page' not in st.session_state:
        st.session_state.page = 'dashboard'

    with st.sidebar:
        st.markdown(f"### Dr. {service.session.doctor_name}")
        st.divider()
        for label, page in (("Dashboard", 'dashboard'), ("Add Patient", 'add_patient'),
                            ("View Patients", 'patients')):
            if st.button(label, key=f"nav_{page}", use_container_width=True):
                _navigate(page)
        st.divider()
        if st.button("Log Out", key="logout_btn", use_container_width=True):
            service.session.logout()
            st.session_state.page = 'dashboard'
            st.session_state.selected_patient_id = None
            st.session_state.pop('workflow', None)
            st.rerun()

    _show_flash()
    page = st.session_state.page
    patient_id = st.session_state.get('selected_patient_id')
    if page == 'add_patient':
        _render_add_patient_page(service)
    elif page == 'patients':
        _render_view_patients_page(service)
    elif page == 'patient_detail':
        _render_patient_detail_page(service, patient_id)
    elif page == 'examination':
        _render_examination_page(service, patient_id)
    elif page == 'findings':
        _render_findings_page(service, patient_id)
    else:
        _render_dashboard(service)


def _render_dashboard(service):
    """Renders practice counters, quick actions and today's examinations."""
    st.markdown(f"## Welcome back, Dr. {service.session.doctor_name}")
    _show_storage_warnings(service)
    stats = service.dashboard_stats()
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Patients", stats['totalPatients'])
    col2.metric("Active Cases", stats['activeCases'])
    col3.metric("Completed Treatments", stats['completedTreatments'])
    col4.metric("Examinations Today", stats['examinationsToday'])

    st.divider()
    st.subheader("Quick Actions")
    action1, action2 = st.columns(2)
    with action1:
        if st.button("Add New Patient", use_container_width=True, type="primary"):
            _navigate('add_patient')
    with action2:
        if st.button("View All Patients", use_container_width=True):
            _navigate('patients')


def _render_add_patient_page(service):
    """Renders the registration form and stores the patient on submit."""
    st.markdown("## Add New Patient")
    st.caption("Register a new patient in the system. Fields marked * are required.")

    today = datetime.date.today()
    with st.form("add_patient_form"):
        col1, col2 = st.columns(2)
        first_name = col1.text_input("First Name *", placeholder="Enter first name")
        last_name = col2.text_input("Last Name *", placeholder="Enter last name")

        col3, col4 = st.columns(2)
        gender = col3.selectbox("Gender", GENDER_OPTIONS,
                                format_func=lambda value: value.capitalize() if value else "Select gender")
        date_of_birth = col4.date_input("Date of Birth", value=None, min_value=datetime.date(1900, 1, 1),
                                        max_value=today)

        col5, col6 = st.columns(2)
        phone = col5.text_input("Phone Number *", placeholder="Enter phone number")
        email = col6.text_input("Email Address", placeholder="Enter email address")

        address = st.text_area("Address", placeholder="Enter complete address")
        emergency_contact = st.text_input("Emergency Contact", placeholder="Emergency contact name and phone")
        medical_history = st.text_area("Medical History",
                                       placeholder="Any relevant medical history, allergies, or conditions...")
        submitted = st.form_submit_button("Add Patient", type="primary")

    if submitted:
        form = {
            'firstName': first_name,
            'lastName': last_name,
            'gender': gender,
            'dateOfBirth': date_of_birth,
            'phone': phone,
            'email': email,
            'address': address,
            'emergencyContact': emergency_contact,
            'medicalHistory': medical_history,
        }
        try:
            with st.spinner("Adding patient..."):
                patient = service.registry.create(form)
        except ValidationError as e:
            st.error(_describe_validation_error(e))
        except CorruptCollectionError:
            st.error("The patient list could not be read, so the new patient was not saved.")
        else:
            _flash(f"{patient.full_name} has been registered with ID: {patient.patient_id}")
            _navigate('patients')


def _render_view_patients_page(service):
    """Renders the searchable, paginated patient directory."""
    st.markdown("## Patient Records")
    _show_storage_warnings(service)
    patients = service.registry.initialize()

    if 'directory_page' not in st.session_state:
        st.session_state.directory_page = 1
    if 'directory_last_term' not in st.session_state:
        st.session_state.directory_last_term = ''

    search_term = st.text_input("Search", placeholder="Search by name, patient ID, or phone...",
                                key="patient_search")
    view = DirectoryView(patients, page_size=service.settings.page_size,
                         search_term=st.session_state.directory_last_term,
                         current_page=st.session_state.directory_page)
    if search_term != st.session_state.directory_last_term:
        view.set_search_term(search_term)
        st.session_state.directory_last_term = search_term

    counts = PatientRegistry.count_by_status(patients)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Patients", len(patients))
    col2.metric(STATUS_ACTIVE, counts[STATUS_ACTIVE])
    col3.metric(STATUS_UNDER_TREATMENT, counts[STATUS_UNDER_TREATMENT])
    col4.metric(STATUS_COMPLETED, counts[STATUS_COMPLETED])

    st.subheader("Patient Directory")
    st.caption(view.summary())
    page_items = view.page_items
    if not page_items:
        st.info("No patients found.")
    else:
        table = PatientRegistry.to_dataframe(page_items)
        table.insert(0, 'S.No', [view.row_number(i) for i in range(len(page_items))])
        table['Reg. Date'] = table['Reg. Date'].map(_format_date)
        st.dataframe(table, hide_index=True, use_container_width=True)

        selected = st.selectbox("Select a patient", [p.patient_id for p in page_items],
                                format_func=lambda pid: next(f"{p.full_name} ({pid})" for p in page_items
                                                             if p.patient_id == pid))
        if st.button("View Patient"):
            _navigate('patient_detail', selected)

    if view.total_pages > 1:
        st.caption(f"Page {view.current_page} of {view.total_pages}")
        prev_col, next_col = st.columns(2)
        with prev_col:
            if st.button("Previous", disabled=view.current_page == 1, key="directory_prev"):
                st.session_state.directory_page = view.previous_page()
                st.rerun()
        with next_col:
            if st.button("Next", disabled=view.current_page == view.total_pages, key="directory_next"):
                st.session_state.directory_page = view.next_page()
                st.rerun()
    st.session_state.directory_page = view.current_page

    if view.filtered:
        export = PatientRegistry.to_dataframe(view.filtered)
        st.download_button(
            "Download Patients (CSV)", export.to_csv(index=False).encode('utf-8'),
            f"patients_{datetime.date.today()}.csv", "text/csv"
        )


def _load_patient_or_redirect(service, patient_id):
    """Fetches a patient, sending the user back to the directory when it does not exist."""
    try:
        return service.registry.find_by_id(patient_id)
    except NotFoundError:
        _flash("The requested patient could not be found.", kind="error")
        _navigate('patients')


def _render_patient_detail_page(service, patient_id):
    """Renders a patient's profile and examination history."""
    patient = _load_patient_or_redirect(service, patient_id)
    if st.button("← Back to Patients"):
        _navigate('patients')

    st.markdown(f"## {patient.full_name}")
    st.caption(f"Patient ID: {patient.patient_id} · Status: {patient.status}")

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("##### Personal Information")
        st.write(f"**Gender:** {(patient.gender or 'N/A').capitalize()}")
        st.write(f"**Age:** {patient.age if patient.age is not None else 'N/A'}")
        st.write(f"**Date of Birth:** {patient.date_of_birth or 'N/A'}")
        st.write(f"**Registered:** {_format_date(patient.registration_date, long=True)}")
    with col2:
        st.markdown("##### Contact Information")
        st.write(f"**Phone:** {patient.phone}")
        st.write(f"**Email:** {patient.email or 'N/A'}")
        st.write(f"**Address:** {patient.address or 'N/A'}")
        st.write(f"**Emergency Contact:** {patient.emergency_contact or 'N/A'}")

    if patient.medical_history:
        st.markdown("##### Medical History")
        st.write(patient.medical_history)

    if st.button("Start Examination", type="primary"):
        st.session_state.pop('workflow', None)
        _navigate('examination', patient.patient_id)

    st.divider()
    st.markdown("##### Examination History")
    records = service.examinations_for(patient.patient_id)
    if not records:
        st.info("No examinations recorded yet.")
    else:
        table = records_to_dataframe(records)[['date', 'chiefComplaint', 'painLevel', 'intraoralImages',
                                               'xrayImages']]
        table['date'] = table['date'].map(_format_date)
        st.dataframe(table, hide_index=True, use_container_width=True)
        if st.button("View Latest Findings"):
            _navigate('findings', patient.patient_id)


def _get_workflow(service, patient_id):
    """Returns the examination in progress for `patient_id`, starting one if needed."""
    workflow = st.session_state.get('workflow')
    if workflow is None or workflow.patient_id != patient_id or workflow.committed:
        workflow = service.start_examination(patient_id)
        st.session_state.workflow = workflow
        st.session_state.attached_uploads = set()
    return workflow


def _render_exam_step1(workflow):
    st.markdown("#### Chief Complaint & Vitals")
    workflow.set_field('chiefComplaint', st.text_area(
        "Chief Complaint", value=workflow.draft.chief_complaint,
        placeholder="Describe the main concern or reason for visit...", key="exam_chiefComplaint"))
    col1, col2 = st.columns(2)
    workflow.set_field('painLevel', col1.selectbox(
        "Pain Level (0-10)", list(range(11)), index=workflow.draft.pain_level,
        format_func=lambda level: f"{level} - {pain_label(level)}", key="exam_painLevel"))
    workflow.set_field('bloodPressure', col2.text_input(
        "Blood Pressure", value=workflow.draft.blood_pressure, placeholder="120/80", key="exam_bloodPressure"))
    col3, col4 = st.columns(2)
    workflow.set_field('temperature', col3.text_input(
        "Temperature (°F)", value=workflow.draft.temperature, placeholder="98.6", key="exam_temperature"))
    workflow.set_field('pulse', col4.text_input(
        "Pulse Rate (BPM)", value=workflow.draft.pulse, placeholder="72", key="exam_pulse"))


def _render_exam_step2(workflow):
    st.markdown("#### Medical History")
    workflow.set_field('isDiabetic', st.checkbox("Diabetic", value=workflow.draft.is_diabetic,
                                                 key="exam_isDiabetic"))
    if 'hba1c' in workflow.visible_fields():
        col1, col2, col3 = st.columns(3)
        workflow.set_field('hba1c', col1.text_input(
            "HbA1c (%)", value=workflow.draft.hba1c, placeholder="7.0", key="exam_hba1c"))
        workflow.set_field('fastingGlucose', col2.text_input(
            "Fasting Glucose", value=workflow.draft.fasting_glucose, placeholder="100", key="exam_fastingGlucose"))
        workflow.set_field('prandialGlucose', col3.text_input(
            "Post-prandial Glucose", value=workflow.draft.prandial_glucose, placeholder="140",
            key="exam_prandialGlucose"))
    workflow.set_field('hasAsthma', st.checkbox("Asthma", value=workflow.draft.has_asthma, key="exam_hasAsthma"))
    workflow.set_field('hasCardiacIssues', st.checkbox("Cardiac Issues", value=workflow.draft.has_cardiac_issues,
                                                       key="exam_hasCardiacIssues"))
    workflow.set_field('isPregnant', st.checkbox("Pregnancy", value=workflow.draft.is_pregnant,
                                                 key="exam_isPregnant"))
    workflow.set_field('allergies', st.text_area(
        "Known Allergies", value=workflow.draft.allergies, placeholder="List any known allergies...",
        key="exam_allergies"))
    workflow.set_field('currentMedications', st.text_area(
        "Current Medications", value=workflow.draft.current_medications,
        placeholder="List current medications and dosages...", key="exam_currentMedications"))


def _attach_uploads(workflow, uploads, category):
    """Hands newly picked files to the workflow once; reruns must not attach them again."""
    seen = st.session_state.setdefault('attached_uploads', set())
    fresh = []
    for upload in uploads or []:
        upload_id = getattr(upload, 'file_id', None) or f"{category}:{upload.name}:{upload.size}"
        if upload_id not in seen:
            seen.add(upload_id)
            fresh.append(upload.name)
    if fresh:
        workflow.attach_images(fresh, category)
        st.success(f"{len(fresh)} {category} image(s) uploaded successfully.")


def _render_exam_step3(workflow):
    st.markdown("#### Examination & Documentation")
    workflow.set_field('oralExamination', st.text_area(
        "Oral Examination Findings", value=workflow.draft.oral_examination,
        placeholder="Record detailed examination findings...", height=160, key="exam_oralExamination"))

    col1, col2 = st.columns(2)
    with col1:
        uploads = st.file_uploader("Upload Intraoral Images", type=IMAGE_FILE_TYPES, accept_multiple_files=True,
                                   key="exam_upload_intraoral")
        _attach_uploads(workflow, uploads, IMAGE_INTRAORAL)
    with col2:
        uploads = st.file_uploader("Upload X-rays", type=IMAGE_FILE_TYPES, accept_multiple_files=True,
                                   key="exam_upload_xray")
        _attach_uploads(workflow, uploads, IMAGE_XRAY)
    counts = workflow.image_counts()
    if any(counts.values()):
        st.caption(f"{counts[IMAGE_INTRAORAL]} intraoral and {counts[IMAGE_XRAY]} x-ray file(s) selected")

    workflow.set_field('additionalNotes', st.text_area(
        "Additional Notes", value=workflow.draft.additional_notes,
        placeholder="Any additional observations or notes...", key="exam_additionalNotes"))


def _render_examination_page(service, patient_id):
    """Renders the three-step examination wizard for the selected patient."""
    patient = _load_patient_or_redirect(service, patient_id)
    workflow = _get_workflow(service, patient.patient_id)

    if st.button("← Back to Patient"):
        _navigate('patient_detail', patient.patient_id)
    st.markdown("## Patient Examination")
    st.caption(f"Patient: {patient.full_name} · ID: {patient.patient_id}")

    st.progress(workflow.step / LAST_STEP, text=" → ".join(
        f"**Step {number}: {title}**" if number == workflow.step else f"Step {number}: {title}"
        for number, (title, _) in STEPS.items()
    ))
    st.markdown(f"### Step {workflow.step}: {workflow.title}")
    st.caption(workflow.description)

    if workflow.step == 1:
        _render_exam_step1(workflow)
    elif workflow.step == 2:
        _render_exam_step2(workflow)
    else:
        _render_exam_step3(workflow)

    missing = workflow.missing_fields()
    if missing:
        st.caption("Still empty: " + ", ".join(FIELD_LABELS.get(name, name) for name in missing))

    st.divider()
    prev_col, next_col = st.columns(2)
    with prev_col:
        if st.button("Previous", disabled=workflow.step == 1, key="exam_prev"):
            workflow.previous()
            st.rerun()
    with next_col:
        label = "Complete Examination" if workflow.is_last_step else "Next"
        if st.button(label, type="primary", key="exam_next"):
            try:
                record = workflow.next()
            except (NotFoundError, WorkflowError) as e:
                st.error(str(e))
            except CorruptCollectionError:
                st.error("Stored examinations could not be read, so this examination was not saved.")
            else:
                if record is not None:
                    st.session_state.pop('workflow', None)
                    _flash("Patient examination has been recorded successfully.")
                    _navigate('findings', record.patient_id)
                st.rerun()


def _render_findings_page(service, patient_id):
    """Shows the most recent examination recorded for a patient."""
    st.markdown("## Examination Findings")
    record = service.latest_examination(patient_id)
    if st.button("← Back to Patient"):
        _navigate('patient_detail', patient_id)
    if record is None:
        st.info("No examination has been recorded for this patient yet.")
        return

    st.caption(f"Patient ID: {record.patient_id} · Recorded {_format_date(record.date, long=True)}")
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("##### Chief Complaint & Vitals")
        st.write(record.chief_complaint or "—")
        st.write(f"**Pain:** {record.pain_level} - {pain_label(record.pain_level)}")
        st.write(f"**Blood Pressure:** {record.blood_pressure or 'N/A'}")
        st.write(f"**Temperature:** {record.temperature or 'N/A'}")
        st.write(f"**Pulse:** {record.pulse or 'N/A'}")
    with col2:
        st.markdown("##### Medical History")
        conditions = [label for label, flag in (("Diabetic", record.is_diabetic), ("Asthma", record.has_asthma),
                                                ("Cardiac Issues", record.has_cardiac_issues),
                                                ("Pregnancy", record.is_pregnant)) if flag]
        st.write(f"**Conditions:** {', '.join(conditions) or 'None reported'}")
        if record.is_diabetic:
            st.write(f"**HbA1c:** {record.hba1c or 'N/A'} · **Fasting:** {record.fasting_glucose or 'N/A'} · "
                     f"**Post-prandial:** {record.prandial_glucose or 'N/A'}")
        st.write(f"**Allergies:** {record.allergies or 'None'}")
        st.write(f"**Medications:** {record.current_medications or 'None'}")

    st.markdown("##### Oral Examination")
    st.write(record.oral_examination or "—")
    for category, title in ((IMAGE_INTRAORAL, "Intraoral Images"), (IMAGE_XRAY, "X-rays")):
        files = [image.file_ref for image in record.images if image.category == category]
        st.write(f"**{title} ({len(files)}):** {', '.join(files) or 'None'}")
    if record.additional_notes:
        st.markdown("##### Additional Notes")
        st.write(record.additional_notes)
