"""
Fourier Series Lab
Interactive web interface for approximating a function by a truncated
Fourier series.

Run with:
    streamlit run app.py

Features:
- Type any f(x) and tune cosine (A0, A1, ...) and sine (B1, B2, ...) terms
- Live L2 error on [-π, π]
- Coefficient table, CSV/PNG/JSON export, autosave and save/load of the session
"""

import logging

import streamlit as st

from approximation import ApproximationState
from config import log_level, state_file_path

# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="Fourier Series Lab",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed"
)

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Custom CSS
st.markdown("""
<style>
    .stApp {
        background-color: #f9f9f9;
        background-image: none;
    }

    .main-header {
        font-size: 2.4rem;
        font-weight: 700;
        color: #1f77b4;
        margin-bottom: 0;
    }

    /* Coefficient bound boxes are narrow, keep the text centred */
    div[data-testid="stTextInput"] input {
        text-align: center;
    }

    .stTabs [data-baseweb="tab"] {
        font-size: 1.1rem;
        font-weight: 600;
        padding: 12px 24px;
        border-radius: 6px;
    }

    div[data-testid="stMetricValue"] {
        font-family: monospace;
    }
</style>
""", unsafe_allow_html=True)

# Import modules
from tab_approximate import STATE_KEY, approximate_tab
from tab_export import apply_pending_state, export_tab

logger = logging.getLogger(__name__)

# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application function."""

    # One approximation state per browser session, restored from disk if saved
    if STATE_KEY not in st.session_state:
        path = state_file_path()
        st.session_state[STATE_KEY] = ApproximationState.load(path)
        logger.info("Started session from %s", path)

    apply_pending_state()

    # Header
    st.markdown('<p class="main-header">Fourier Series Lab</p>', unsafe_allow_html=True)
    st.markdown("Approximate any $f(x)$ by hand with a truncated Fourier series")

    with st.expander("**About the Method**", expanded=False):
        st.markdown("The partial Fourier sum shown in red is")
        st.latex(r"S(x) = \sum_{n=0}^{N-1} A_n \cos(nx) + \sum_{m=1}^{M} B_m \sin(mx)")
        st.markdown("and its distance to the target function is the L2 error")
        st.latex(r"\|f - S\|_2 = \sqrt{\int_{-\pi}^{\pi} \big(f(x) - S(x)\big)^2\, dx}")
        st.markdown(r"""
        - Add or remove terms with the **+** / **-** buttons above each column
        - Each coefficient has a slider between its **min** and **max** boxes;
          the bounds accept numbers or constants such as `pi/2`
        - The expression is applied when you press Enter or leave the box;
          an invalid expression keeps the previous curve
        - Every edit is saved to the state file automatically and restored
          next time; switch this off in **Export & Session** to save only
          with the **Save** button
        - For $f(x) = x^2$ the exact coefficients are $A_0 = \pi^2/3$ and
          $A_n = 4(-1)^n / n^2$
        """)

    tab_approx, tab_export = st.tabs([
        "Approximate",
        "Export & Session"
    ])

    # TAB 1: APPROXIMATE
    with tab_approx:
        approximate_tab()

    # TAB 2: EXPORT & SESSION
    with tab_export:
        export_tab()


if __name__ == "__main__":
    main()
