"""
This is the main entry point for the DentalCare Streamlit application.

This script handles the following key responsibilities:
- Sets the overall page configuration and logging.
- Initializes the `DentalCareService`, which owns the store, the patient registry
  and the doctor session.
- Routes the user to the login page or the main application depending on
  whether a doctor is logged in.
"""
# dentalcare/main.py

import streamlit as st

from dentalcare.config import get_settings
from dentalcare.logging_config import configure_logging
from dentalcare.service import DentalCareService
import gui

# Set the basic configuration for the Streamlit page.
st.set_page_config(
    page_title="DentalCare Pro",
    layout="wide"
)

configure_logging(get_settings().log_level)


# Service Initialization
@st.cache_resource
def get_dentalcare_service():
    """
    Initializes and returns the `DentalCareService` instance.

    Decorated with `@st.cache_resource` so the service is created once per
    process and shared across reruns.

    Returns:
        DentalCareService: The shared application service.
    """
    return DentalCareService()


service = get_dentalcare_service()

# Session State Management
if 'page' not in st.session_state:
    st.session_state.page = 'dashboard'
if 'selected_patient_id' not in st.session_state:
    st.session_state.selected_patient_id = None

# Main App Router
if service.session.is_logged_in:
    gui.show_main_app(service)
else:
    gui.show_login_page(service)
