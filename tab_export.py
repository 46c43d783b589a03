"""
Fourier Series Lab - Export Tab
Coefficient table, downloads and saving/loading the session state.
"""

import json

import streamlit as st
import matplotlib.pyplot as plt
import pandas as pd

from approximation import ApproximationState
from coefficients import COS, SIN
from config import preset_name, state_file_path
from tab_approximate import (STATE_KEY, FUNC_INPUT_KEY, PRESET_KEY, AUTOSAVE_KEY,
                             autosave, autosave_enabled, get_state,
                             create_download_button, make_figure)


def coefficient_table(state):
    """All coefficients as a DataFrame, cosine terms first."""
    rows = []
    for kind in (COS, SIN):
        coeffs = state.coefficients(kind)
        for i, c in enumerate(coeffs):
            rows.append({
                'Term': coeffs.label(i),
                'Kind': kind,
                'Frequency': i if kind == COS else i + 1,
                'Value': c.value,
                'Min': c.min,
                'Max': c.max,
            })
    return pd.DataFrame(rows, columns=['Term', 'Kind', 'Frequency', 'Value', 'Min', 'Max'])


def _replace_state(new_state):
    st.session_state[STATE_KEY] = new_state
    st.session_state[FUNC_INPUT_KEY] = new_state.function_text
    st.session_state[PRESET_KEY] = preset_name(new_state.function_text)
    st.session_state.expression_error = False


def apply_pending_state():
    """Swap in an uploaded state. Must run before any widget is created."""
    if 'pending_state' in st.session_state:
        _replace_state(st.session_state.pop('pending_state'))


def _load_from_file():
    path = state_file_path()
    _replace_state(ApproximationState.load(path))
    st.session_state.export_message = ("success", f"Loaded state from `{path}`")


def _save_to_file():
    path = state_file_path()
    if get_state().save(path):
        st.session_state.export_message = ("success", f"Saved state to `{path}`")
    else:
        st.session_state.export_message = ("error", f"Could not write `{path}`")


def _reset():
    _replace_state(ApproximationState.default())
    autosave()
    st.session_state.export_message = ("success", "Reset to f(x) = x^2 with no coefficients")


def export_tab():
    """Tab 2: export and persistence."""
    state = get_state()

    st.markdown("## Export & Session")

    # ==========================================================================
    # COEFFICIENT TABLE
    # ==========================================================================
    st.subheader("1. Coefficients")
    df = coefficient_table(state)
    if df.empty:
        st.info("No coefficients yet. Add some with the **+** buttons in the Approximate tab.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)

    col_csv, col_png = st.columns(2)
    with col_csv:
        st.download_button(
            label="Download Coefficients (CSV)",
            data=df.to_csv(index=False),
            file_name="fourier_coefficients.csv",
            mime="text/csv",
            use_container_width=True
        )
    with col_png:
        output = st.session_state.get('last_output')
        if output is None:
            output = state.tick()
        fig = make_figure(output, state.function_text)
        create_download_button(fig, "fourier_approximation", key="dl_fourier_plot")
        plt.close(fig)

    # ==========================================================================
    # SESSION STATE
    # ==========================================================================
    st.markdown("---")
    st.subheader("2. Session")
    st.caption(f"State file: `{state_file_path()}`")

    autosave_enabled()
    st.checkbox(
        "Save automatically after every edit",
        key=AUTOSAVE_KEY,
        help="Writes the state file whenever the expression, a coefficient or a "
             "bound changes. Turn off to save only with the Save button."
    )

    col_save, col_load, col_reset = st.columns(3)
    with col_save:
        st.button("Save", key="state_save", on_click=_save_to_file,
                  use_container_width=True)
    with col_load:
        st.button("Load", key="state_load", on_click=_load_from_file,
                  use_container_width=True)
    with col_reset:
        st.button("Reset", key="state_reset", on_click=_reset,
                  use_container_width=True)

    message = st.session_state.pop('export_message', None)
    if message is not None:
        level, text = message
        if level == "success":
            st.success(text)
        else:
            st.error(text)

    st.download_button(
        label="Download State (JSON)",
        data=json.dumps(state.to_dict(), indent=2),
        file_name="fourier_state.json",
        mime="application/json",
        use_container_width=True
    )

    uploaded = st.file_uploader("Restore from JSON", type=['json'], key="upload_state_file")
    if uploaded:
        # Only apply a given upload once
        file_hash = hash(uploaded.getvalue())
        if file_hash != st.session_state.get('last_uploaded_state_hash'):
            st.session_state.last_uploaded_state_hash = file_hash
            try:
                data = json.loads(uploaded.getvalue().decode('utf-8'))
                new_state = ApproximationState.from_dict(data)
            except (ValueError, TypeError, AttributeError) as e:
                st.error(f"Could not restore state: {e}")
            else:
                # Widgets of the first tab already exist in this run
                st.session_state.pending_state = new_state
                st.session_state.export_message = ("success", f"Restored '{uploaded.name}'")
                st.rerun()
