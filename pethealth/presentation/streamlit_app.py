import asyncio
import logging
import os
import threading
from typing import List

import streamlit as st

from pethealth.application.errors import DiagnosticError
from pethealth.application.schemas import DiagnoseRequest, QuickCheckRequest
from pethealth.application.use_cases import DiagnosticService
from pethealth.domain.fallback import MOCK_MODEL
from pethealth.domain.models import DiagnosisResult, DurationBucket, Species, Urgency
from pethealth.infrastructure.config import Settings
from pethealth.infrastructure.llm.openai_client import OpenAIDiagnosticAdapter
from pethealth.infrastructure.records.json_store import JsonPetStore


logger = logging.getLogger(__name__)


DISCLAIMER = (
    "⚕️ **DISCLAIMER:** This tool does NOT replace a veterinarian. "
    "If your pet shows emergency symptoms, contact an emergency veterinary clinic immediately."
)

QUICK_CHECK = "Quick check (no saved pet)"

URGENCY_BANNERS = {
    Urgency.EMERGENCY: ("## 🚨 EMERGENCY", "**Contact an emergency veterinary clinic now.**"),
    Urgency.HIGH: ("## ⚠️ High Urgency", "See a veterinarian as soon as possible."),
    Urgency.MEDIUM: ("## ⏰ Medium Urgency", "Schedule a veterinary visit soon."),
    Urgency.LOW: ("## ✅ Low Urgency", "Monitor your pet. Home care may be sufficient."),
}


@st.cache_resource
def get_service() -> DiagnosticService:
    """One service per process; the OpenAI client inside it is created lazily."""
    settings = Settings()
    config = settings.diagnostic_config()
    store = JsonPetStore(storage_path=settings.health_records_path)
    return DiagnosticService(
        llm=OpenAIDiagnosticAdapter(config=config),
        animals=store,
        records=store,
        recommendations_max_tokens=config.recommendations_max_tokens,
    )


@st.cache_resource
def _event_loop() -> asyncio.AbstractEventLoop:
    """Long-lived loop so the async OpenAI client survives Streamlit reruns."""
    loop = asyncio.new_event_loop()
    threading.Thread(target=loop.run_forever, daemon=True).start()
    return loop


def _run(coro):
    return asyncio.run_coroutine_threadsafe(coro, _event_loop()).result()


def parse_symptom_lines(text: str) -> List[str]:
    """One symptom per line or comma-separated, order kept, duplicates dropped."""
    symptoms: List[str] = []
    for line in (text or "").splitlines():
        for part in line.split(","):
            part = part.strip()
            if part and part.lower() not in {s.lower() for s in symptoms}:
                symptoms.append(part)
    return symptoms


def format_diagnosis_markdown(diagnosis: DiagnosisResult) -> str:
    lines = ["# 📋 Diagnosis Summary\n"]

    heading, advice = URGENCY_BANNERS[diagnosis.urgency]
    lines.append(heading)
    lines.append(advice)
    if diagnosis.should_see_vet:
        timeframe = f" ({diagnosis.timeframe})" if diagnosis.timeframe else ""
        lines.append(f"**See a veterinarian{timeframe}.**")
    lines.append("")

    lines.append("## 🩺 Possible Conditions (NOT a diagnosis)")
    for condition in diagnosis.possible_conditions:
        lines.append(f"**{condition.name}** (Probability: {condition.probability.value})")
        if condition.description:
            lines.append(f"- {condition.description}")
        if condition.common_in:
            lines.append(f"- Common in: {condition.common_in}")
    lines.append("")

    sections = [
        ("## 📝 Recommended Actions", diagnosis.recommended_actions),
        ("## 🚩 Warning Signs to Watch", diagnosis.warning_signs_to_watch),
        ("## 🏠 Home Care Tips", diagnosis.home_care_tips),
    ]
    for title, items in sections:
        if items:
            lines.append(title)
            lines.extend(f"- {item}" for item in items)
            lines.append("")

    if diagnosis.medications:
        lines.append("## 💊 Medications")
        for med in diagnosis.medications:
            line = f"- **{med.name}** ({med.type.value})"
            if med.dosage:
                line += f": {med.dosage}"
            lines.append(line)
            if med.notes:
                lines.append(f"  - {med.notes}")
        lines.append("")

    lines.append("---")
    lines.append(f"⚠️ {diagnosis.disclaimer}")
    return "\n".join(lines)


def _render_sidebar(service: DiagnosticService):
    st.sidebar.title("⚙️ AI Service")
    status = service.status()
    st.sidebar.caption(f"**Model:** {status.model}")
    if status.configured:
        st.sidebar.success("✓ " + status.message)
    else:
        st.sidebar.warning("⚠️ " + status.message)

    st.sidebar.divider()
    st.sidebar.markdown("### Add a pet")
    with st.sidebar.form("add_pet", clear_on_submit=True):
        name = st.text_input("Name")
        species = st.selectbox("Species", [s.value for s in Species])
        breed = st.text_input("Breed (optional)")
        age = st.number_input("Age (years)", min_value=0.0, max_value=100.0, step=0.5, value=None)
        weight = st.number_input("Weight (kg)", min_value=0.0, max_value=1000.0, step=0.1, value=None)
        gender = st.selectbox("Gender", ["Unknown", "Male", "Female"])
        if st.form_submit_button("Save pet") and name.strip():
            service.animals.add_animal(**pet_form_values(name, species, breed, age, weight, gender))
            st.rerun()


def pet_form_values(name, species, breed, age, weight, gender) -> dict:
    """Empty inputs become None; a zero age or weight is kept."""
    return {
        "name": name,
        "species": species,
        "breed": breed.strip() if breed and breed.strip() else None,
        "age": age,
        "weight": weight,
        "gender": gender,
    }


def _run_diagnosis(service: DiagnosticService, pet_choice, species, symptoms, duration, notes, save):
    if pet_choice == QUICK_CHECK:
        request = QuickCheckRequest(species=species, symptoms=symptoms, duration=duration, additional_info=notes)
        return _run(service.quick_check(request))
    request = DiagnoseRequest(
        animal_id=pet_choice.id, symptoms=symptoms, duration=duration,
        additional_info=notes, save_to_records=save,
    )
    outcome = _run(service.diagnose_request(request))
    if outcome.health_record_id:
        st.success("Saved to health records.")
    return outcome.diagnosis


def main():
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    st.set_page_config(
        page_title="Pet Symptom Checker",
        page_icon="🐾",
        layout="centered",
        initial_sidebar_state="expanded",
    )

    service = get_service()
    _render_sidebar(service)

    st.markdown("# 🐾 Pet Symptom Checker")
    st.info(DISCLAIMER)

    pets = service.animals.list_animals()
    pet_choice = st.selectbox(
        "Pet", [QUICK_CHECK] + pets,
        format_func=lambda p: p if isinstance(p, str) else f"{p.name} ({p.species.value})",
    )
    species = None
    if pet_choice == QUICK_CHECK:
        species = st.selectbox("Species", [s.value for s in Species])

    symptoms_text = st.text_area("Symptoms (one per line)", placeholder="Vomiting\nLethargy")
    duration = st.selectbox("Duration", [""] + [d.value for d in DurationBucket])
    notes = st.text_area("Anything else we should know? (optional)")
    save = pet_choice != QUICK_CHECK and st.checkbox("Save result to health records")

    if st.button("🔬 Analyze symptoms", use_container_width=True):
        with st.spinner("🔬 Analyzing symptoms..."):
            try:
                st.session_state.diagnosis = _run_diagnosis(
                    service, pet_choice, species, parse_symptom_lines(symptoms_text), duration, notes, save
                )
                st.session_state.diagnosis_species = species or pet_choice.species.value
            except DiagnosticError as e:
                logger.warning("Diagnosis failed: %s", e.message)
                st.error(f"❌ {e.message}")

    diagnosis = st.session_state.get("diagnosis")
    if diagnosis is None:
        return

    if diagnosis.model == MOCK_MODEL:
        st.warning("Showing a demo result: the AI diagnostic service was not used.")
    st.markdown(format_diagnosis_markdown(diagnosis))

    if diagnosis.possible_conditions and service.is_configured():
        condition = st.selectbox("Care recommendations for", [c.name for c in diagnosis.possible_conditions])
        if st.button("Get care recommendations"):
            try:
                recs = _run(
                    service.get_care_recommendations(st.session_state.diagnosis_species, condition)
                )
                st.json(recs.model_dump(by_alias=True))
            except DiagnosticError as e:
                st.error(f"❌ {e.message}")


if __name__ == "__main__":
    main()
