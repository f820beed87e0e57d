import logging

import streamlit as st
import compound_app   # compound process S(t) histogram page

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

st.set_page_config(page_title="Compound Process S(t)", layout="wide")

st.sidebar.title("Compound Process S(t)")
compound_app.run_app()
