import logging

import streamlit as st

from compound_process import (
    InvalidParameter,
    ProcessParameters,
    run_horizons,
    summarize_horizons,
)
from histogram_plots import (
    PARAMETER_IMPACT,
    build_histogram_grid,
    build_stats_table,
    theory_text,
)
from process_config import (
    LAMBDA_RANGE,
    MAX_DIRECT_CLAIM_DRAWS,
    MAX_SEED,
    MU_RANGE,
    SAMPLE_COUNT_RANGE,
    TIME_HORIZONS,
)

logger = logging.getLogger(__name__)

RESULTS_KEY = "compound_results"

DIRECT_SAMPLER_HELP = (
    f"Draws every claim and sums them. Only runs when simulations × λ × {max(TIME_HORIZONS):,} "
    f"is at most {MAX_DIRECT_CLAIM_DRAWS:,} expected claim draws, e.g. 1000 simulations with λ ≤ 2."
)


def direct_sampler_fits(n_sim, lambda_):
    """Whether the direct sampler stays within its draw budget at the longest horizon."""
    return n_sim * lambda_ * max(TIME_HORIZONS) <= MAX_DIRECT_CLAIM_DRAWS


def run_app():
        st.header("Compound Process S(t) - Histogram Analysis")
        st.markdown("""
        Claims arrive as a Poisson process with rate λ and each claim is exponentially distributed with rate μ.
        Each run draws the aggregate claims S(t) at several horizons and compares the simulated distribution with the theoretical moments.
        """)

        # --- Sidebar for Inputs ---
        with st.sidebar:
            st.header("Process Parameters")

            lambda_ = st.slider("Interarrival Rate (λ)", *LAMBDA_RANGE)
            st.caption("Higher λ = more frequent arrivals")

            mu = st.slider("Claim Size Rate (μ)", *MU_RANGE)
            st.caption("Higher μ = smaller individual claims")

            n_sim = st.number_input("Number of Simulations", *(int(v) for v in SAMPLE_COUNT_RANGE))
            seed = st.number_input("Random seed (0 = fresh draws)", 0, MAX_SEED, 0, 1)
            direct = st.checkbox(
                "Sum individual claims (slow reference sampler)", value=False, help=DIRECT_SAMPLER_HELP
            )
            if direct and not direct_sampler_fits(n_sim, lambda_):
                st.warning("Too many claim draws for the reference sampler; lower the simulations or λ, or untick it.")

            run_button = st.button("Generate Histograms", type="primary")

            st.markdown("---")
            st.subheader("Theoretical Results:")
            st.code(theory_text(lambda_, mu), language=None)

            st.markdown("---")
            st.subheader("Parameter Impact Summary:")
            st.code(PARAMETER_IMPACT, language=None)

        # --- Run ---
        if run_button:
            with st.spinner(f"Simulating {n_sim} paths at each of {len(TIME_HORIZONS)} horizons..."):
                try:
                    params = ProcessParameters(lambda_=lambda_, mu=mu)
                    samples = run_horizons(
                        params, int(n_sim),
                        seed=int(seed) or None,
                        method="direct" if direct else "gamma",
                    )
                except InvalidParameter as exc:
                    logger.warning("Rejected simulation request: %s", exc)
                    st.error(f"Invalid simulation request: {exc}")
                else:
                    # Only a completed run replaces what is on screen
                    st.session_state[RESULTS_KEY] = {
                        "params": params,
                        "samples": samples,
                        "summaries": summarize_horizons(samples, params),
                    }

        # --- Main Panel for Outputs ---
        results = st.session_state.get(RESULTS_KEY)
        if results is None:
            st.info("Adjust the parameters in the sidebar and click 'Generate Histograms' to see the results.")
            return

        params = results["params"]
        horizons = ", ".join(f"{t:g}" for t in results["samples"])
        st.subheader(f"Histograms of S(t) at t = {horizons}")
        fig = build_histogram_grid(results["samples"], params)
        st.plotly_chart(fig, use_container_width=True)
        st.caption("Values above the 99th percentile of each sample are hidden from the histograms only.")

        st.markdown("---")
        st.subheader("Distribution Statistics")
        st.dataframe(build_stats_table(results["summaries"]), use_container_width=True, hide_index=True)
