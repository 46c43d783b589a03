"""
Fourier Series Lab - Approximate Tab
Expression box, L2 error, plot and the two coefficient columns.
"""

import io

import streamlit as st
import matplotlib.pyplot as plt

from approximation import ApproximationState
from coefficients import COS, SIN
from config import (DISPLAY_DOMAIN, INTEGRATION_DOMAIN, PLOT_XLIM, PLOT_YLIM, PRESETS,
                    autosave_default, preset_name, state_file_path)

STATE_KEY = "approx_state"
FUNC_INPUT_KEY = "function_text_input"
PRESET_KEY = "preset_select"
AUTOSAVE_KEY = "autosave"


def get_state() -> ApproximationState:
    return st.session_state[STATE_KEY]


def create_download_button(fig, filename, label="Download Plot (PNG, 300 DPI)", key=None):
    """Create a download button for a matplotlib figure."""
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=300, bbox_inches='tight', facecolor='white')
    buf.seek(0)
    st.download_button(
        label=label,
        data=buf,
        file_name=f"{filename}.png",
        mime="image/png",
        key=key,
        use_container_width=True
    )


def make_figure(output, function_text, full_range=False):
    """Target curve and Fourier partial sum on one axis."""
    fig, ax = plt.subplots(figsize=(10, 5))

    x_t, y_t = output.target_points[:, 0], output.target_points[:, 1]
    x_s, y_s = output.approx_points[:, 0], output.approx_points[:, 1]

    ax.plot(x_t, y_t, 'b-', linewidth=2, alpha=0.8, label=f'f(x) = {function_text}')
    ax.plot(x_s, y_s, 'r--', linewidth=2, alpha=0.8, label='Fourier partial sum')
    ax.axvspan(*INTEGRATION_DOMAIN, color='gray', alpha=0.06)

    ax.set_xlim(DISPLAY_DOMAIN if full_range else PLOT_XLIM)
    ax.set_ylim(PLOT_YLIM)
    ax.set_xlabel('x', fontsize=11, fontweight='bold')
    ax.set_ylabel('y', fontsize=11, fontweight='bold')
    ax.set_title(f'L2 error on [-π, π]: {output.l2_error_text}',
                 fontsize=13, fontweight='bold')
    ax.legend(loc='upper right', fontsize=9)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    return fig


# =============================================================================
# CALLBACKS (run before the script body on the next rerun)
# =============================================================================

def autosave_enabled():
    if AUTOSAVE_KEY not in st.session_state:
        st.session_state[AUTOSAVE_KEY] = autosave_default()
    return st.session_state[AUTOSAVE_KEY]


def autosave():
    """Write the state file after an edit unless autosave is switched off."""
    if not autosave_enabled():
        return
    path = state_file_path()
    if not get_state().save(path):
        st.session_state.autosave_failed = path


def _commit_expression():
    text = st.session_state[FUNC_INPUT_KEY]
    ok = get_state().commit_expression(text)
    st.session_state.expression_error = not ok
    # A hand edit no longer matches the selected preset
    st.session_state[PRESET_KEY] = preset_name(text)
    autosave()


def _apply_preset():
    text = PRESETS.get(st.session_state[PRESET_KEY])
    if text is None:
        return
    st.session_state[FUNC_INPUT_KEY] = text
    _commit_expression()


def _widget_key(kind, field, index):
    return f"coeff_{kind}_{field}_{index}"


def _on_value_change(kind, index, key):
    get_state().coefficients(kind).set_value(index, st.session_state[key])
    autosave()


def _on_slider_change(kind, index, key):
    coeffs = get_state().coefficients(kind)
    coeffs.set_value(index, coeffs.clamp(index, st.session_state[key]))
    autosave()


def _on_bound_change(kind, index, which, key):
    coeffs = get_state().coefficients(kind)
    coeffs.set_bound_text(index, which, st.session_state[key])
    coeffs.commit_bound_text(index, which)
    autosave()


def _append(kind):
    get_state().coefficients(kind).append()
    autosave()


def _remove_last(kind):
    get_state().coefficients(kind).remove_last()
    autosave()


# =============================================================================
# WIDGETS
# =============================================================================

def expression_box(state, output):
    if FUNC_INPUT_KEY not in st.session_state:
        st.session_state[FUNC_INPUT_KEY] = state.function_text
    if PRESET_KEY not in st.session_state:
        st.session_state[PRESET_KEY] = preset_name(state.function_text)

    col_input, col_preset, col_error = st.columns([3, 2, 2])

    with col_input:
        st.text_input(
            "f(x)",
            key=FUNC_INPUT_KEY,
            on_change=_commit_expression,
            help="Use x as the variable, e.g. x^2, abs(x), sign(x), exp(-x^2). "
                 "Press Enter or click away to apply."
        )
        if st.session_state.get('expression_error', False):
            st.warning(f"Invalid expression, still showing f(x) = {state.function_text}")
        else:
            st.caption(f"Parsed as: `{state.expression}`")

    with col_preset:
        st.selectbox(
            "Preset",
            list(PRESETS.keys()),
            key=PRESET_KEY,
            on_change=_apply_preset,
        )

    with col_error:
        st.metric("L2 error", output.l2_error_text)


def coefficient_column(kind, views, title):
    """One column of coefficient rows with +/- buttons on top."""
    st.markdown(f"#### {title}")

    col_plus, col_minus = st.columns(2)
    with col_plus:
        st.button("+", key=f"{kind}_append", on_click=_append, args=(kind,),
                  use_container_width=True)
    with col_minus:
        st.button("-", key=f"{kind}_remove", on_click=_remove_last, args=(kind,),
                  use_container_width=True)

    coeffs = get_state().coefficients(kind)

    for i, view in enumerate(views):
        value_key = _widget_key(kind, "value", i)
        slider_key = _widget_key(kind, "slider", i)
        min_key = _widget_key(kind, "min", i)
        max_key = _widget_key(kind, "max", i)

        # Directly set widget keys from the model before the widgets exist
        lo, hi = sorted((view.min, view.max))
        st.session_state[value_key] = view.value
        st.session_state[slider_key] = coeffs.clamp(i, view.value)
        st.session_state[min_key] = view.min_text
        st.session_state[max_key] = view.max_text

        c_label, c_value, c_min, c_slider, c_max = st.columns([1, 2, 2, 5, 2])
        with c_label:
            st.markdown(f"**{view.label}**")
        with c_value:
            st.number_input(
                view.label, key=value_key, step=view.step or 0.01, format="%.4f",
                label_visibility="collapsed",
                on_change=_on_value_change, args=(kind, i, value_key)
            )
        with c_min:
            st.text_input(
                f"{view.label} min", key=min_key, label_visibility="collapsed",
                on_change=_on_bound_change, args=(kind, i, "min", min_key)
            )
        with c_slider:
            if lo < hi:
                st.slider(
                    view.label, min_value=lo, max_value=hi, step=(hi - lo) / 1000,
                    key=slider_key, label_visibility="collapsed",
                    on_change=_on_slider_change, args=(kind, i, slider_key)
                )
            else:
                st.caption("empty range")
        with c_max:
            st.text_input(
                f"{view.label} max", key=max_key, label_visibility="collapsed",
                on_change=_on_bound_change, args=(kind, i, "max", max_key)
            )


# =============================================================================
# TAB FUNCTION
# =============================================================================

def approximate_tab():
    """Tab 1: tune the coefficients against the target function."""
    state = get_state()
    output = state.tick()
    st.session_state.last_output = output

    failed_path = st.session_state.pop('autosave_failed', None)
    if failed_path is not None:
        st.error(f"Autosave could not write `{failed_path}`")

    expression_box(state, output)

    full_range = st.checkbox("Show the full sampled range [-10, 10]", value=False)
    fig = make_figure(output, state.function_text, full_range=full_range)
    st.pyplot(fig)
    plt.close(fig)

    st.markdown("---")
    col_cos, col_sin = st.columns(2)
    with col_cos:
        coefficient_column(COS, output.cos_coefficients, r"Cosine terms $A_n \cos(nx)$")
    with col_sin:
        coefficient_column(SIN, output.sin_coefficients, r"Sine terms $B_n \sin(nx)$")
