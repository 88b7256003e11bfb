"""
Char Yield Studio v1.0
======================
Char yield calculator for ashing runs.

Main entry point for the Streamlit application. Presentation only: every
calculation, validation and file exchange goes through core.SampleCollection.

Run with: streamlit run app.py
"""

import logging
import sys
from pathlib import Path

import streamlit as st

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config_manager import ConfigManager
from core.sample_collection import SampleCollection
from core.sample_record import SampleField
from core.spreadsheet_codec import default_export_filename, mime_type
from core.validation import format_report_for_display
from core.yield_calculator import FORMULA

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

# Page configuration
st.set_page_config(
    page_title="Char Yield Studio",
    page_icon="⚗️",
    layout="centered",
)

GENERATION_KEY = 'widget_generation'
IMPORT_TYPES = ['xlsx', 'xls', 'csv']


def _init_state():
    config = ConfigManager.get_active_config()
    if config is None:
        config = ConfigManager.get_default_config()
        ConfigManager.set_active_config(config)

    # The guide shows on the first visit of a session; the core is only told
    # whether to suppress it.
    first_visit = not st.session_state.get(ConfigManager.GUIDE_SEEN_KEY, False)
    st.session_state[ConfigManager.GUIDE_SEEN_KEY] = True

    if ConfigManager.COLLECTION_KEY not in st.session_state:
        st.session_state[ConfigManager.COLLECTION_KEY] = SampleCollection(
            config=config,
            suppress_guidance=not first_visit,
        )
    st.session_state.setdefault(GENERATION_KEY, 0)


def _on_edit(index: int, field: SampleField, key: str):
    collection: SampleCollection = st.session_state[ConfigManager.COLLECTION_KEY]
    result = collection.update(index, field, st.session_state[key])
    if not result:
        st.toast(result.message)


def _sample_card(collection: SampleCollection, index: int, generation: int):
    record = collection[index]

    def widget_key(field: SampleField) -> str:
        return f"{generation}_{index}_{field.value}"

    def text_input(label: str, field: SampleField, **kwargs):
        key = widget_key(field)
        st.text_input(
            label,
            value=record.get(field),
            key=key,
            on_change=_on_edit,
            args=(index, field, key),
            **kwargs,
        )

    with st.container(border=True):
        col1, col2 = st.columns([2, 1])
        with col1:
            text_input("Sample name", SampleField.NAME)
        with col2:
            text_input("Crucible number", SampleField.CRUCIBLE_NUMBER)

        col1, col2 = st.columns(2)
        with col1:
            text_input("Crucible weight (g)", SampleField.CRUCIBLE_WEIGHT)
            text_input("Ash weight (g)", SampleField.ASH_WEIGHT)
        with col2:
            text_input("Sample weight (g)", SampleField.SAMPLE_WEIGHT)
            st.text_input(
                "Char yield (%)",
                value="" if record.yield_percent is None else str(record.yield_percent),
                key=f"{generation}_{index}_yield",
                disabled=True,
            )


_init_state()
collection: SampleCollection = st.session_state[ConfigManager.COLLECTION_KEY]

col_title, col_help = st.columns([5, 1])
with col_title:
    st.title("Char Yield Calculator")
with col_help:
    if not collection.show_guidance and st.button("❓ Help", key="help_button"):
        collection.suppress_guidance = False
        st.rerun()

if collection.show_guidance:
    with st.expander("How to use", expanded=True):
        st.markdown("""
1. Enter the crucible, sample and ash weights for each sample.
2. Click **Calculate** to compute every yield; results also update as you type.
3. Samples can be imported from an Excel or CSV file.
4. Results can be exported as an Excel file.
""")
        if st.button("Close guide", key="close_guide_button"):
            collection.suppress_guidance = True
            st.rerun()

generation = st.session_state[GENERATION_KEY]
for i in range(len(collection)):
    _sample_card(collection, i, generation)

if collection.last_error:
    st.error(collection.last_error)

col_add, col_calc = st.columns(2)
with col_add:
    if st.button("➕ Add sample", use_container_width=True):
        collection.append()
        st.rerun()
with col_calc:
    if st.button("🧮 Calculate", type="primary", use_container_width=True):
        result = collection.recalculate_all()
        if result.value.errors:
            st.session_state['last_report'] = format_report_for_display(result.value)
        else:
            st.session_state.pop('last_report', None)
        st.rerun()

if 'last_report' in st.session_state:
    st.caption("Details of the last calculation")
    st.markdown(st.session_state['last_report'])

st.divider()

# --- IMPORT / EXPORT ---
col_in, col_out = st.columns(2)

with col_in:
    uploaded_file = st.file_uploader("Import samples", type=IMPORT_TYPES, key='file_up')
    # Import runs on every click, including for a file that was already imported.
    if st.button("📥 Import", key="import_button", disabled=uploaded_file is None,
                 use_container_width=True):
        result = collection.decode(uploaded_file.getvalue())
        if result:
            st.session_state[GENERATION_KEY] += 1
            st.rerun()
        else:
            st.error(result.message)

with col_out:
    export_format = st.selectbox("Export format", ['xlsx', 'csv'], key='export_format')
    export = collection.encode(export_format)
    if export:
        st.download_button(
            "Download",
            export.value,
            file_name=default_export_filename(export_format),
            mime=mime_type(export_format),
            use_container_width=True,
        )
        st.caption(f"Rows: {len(collection)}")

st.divider()
st.subheader("Formula")
st.markdown(FORMULA)

st.markdown("---")
st.caption("Char Yield Studio v1.0")
