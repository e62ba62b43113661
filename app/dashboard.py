# app/dashboard.py
"""
Needs Q-learning dashboard
- Generation lifetimes and causes of death from the generation log
- Action mix from the decision log
- Q-table explorer for the flat and high-level tables

Run with: streamlit run app/dashboard.py
"""
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from agents.persistence import DEFAULT_TABLE_DIR, FLAT_TABLE_FILE, MACRO_TABLE_FILE
from app.reporting import (action_distribution, cause_of_death_counts, generation_summary, load_actions,
                           load_generations, q_table_frame)
from app.utils_logging import ACTIONS_PATH, GENERATIONS_PATH

st.title("Needs Q-Learning")

page = st.sidebar.selectbox("Navigate", ["Generations", "Decisions", "Q-table"])
generations_path = st.sidebar.text_input("Generation log", str(GENERATIONS_PATH))
actions_path = st.sidebar.text_input("Decision log", str(ACTIONS_PATH))
table_dir = st.sidebar.text_input("Q-table directory", str(DEFAULT_TABLE_DIR))

if page == "Generations":
    st.header("Generations")
    gens = load_generations(generations_path)
    if gens.empty:
        st.info("No generations logged yet. Run experiments/train_population.py first.")
    else:
        summary = generation_summary(gens)
        col1, col2, col3 = st.columns(3)
        col1.metric("Generations", int(gens["generation"].nunique()))
        col2.metric("Mean lifetime (s)", f"{gens['lifetime'].mean():.1f}")
        col3.metric("Best lifetime (s)", f"{gens['lifetime'].max():.1f}")

        fig, ax = plt.subplots(figsize=(7, 3))
        ax.plot(summary["generation"], summary["mean_lifetime"], marker="o", linewidth=0.8)
        ax.plot(summary["generation"], summary["rolling_lifetime"], linewidth=1.6)
        ax.set_xlabel("Generation")
        ax.set_ylabel("Lifetime (s)")
        st.pyplot(fig)
        plt.close(fig)

        st.markdown("### Causes of death")
        st.bar_chart(cause_of_death_counts(gens))
        st.dataframe(summary)

elif page == "Decisions":
    st.header("Decisions")
    actions = load_actions(actions_path)
    if actions.empty:
        st.info("No decisions logged yet.")
    else:
        dist = action_distribution(actions)
        st.bar_chart(dist.set_index("action")["count"])
        decisions = actions[actions["event"] == "Action"]
        st.markdown("### Mean reward by generation")
        st.line_chart(decisions.groupby("generation")["reward"].mean())
        st.dataframe(actions.tail(200))

else:
    st.header("Q-table explorer")
    which = st.radio("Table", ["High-level", "Flat"], horizontal=True)
    macro = which == "High-level"
    path = Path(table_dir) / (MACRO_TABLE_FILE if macro else FLAT_TABLE_FILE)
    df = q_table_frame(path, macro=macro)
    if df.empty:
        st.info(f"No Q-table at {path}")
    else:
        st.metric("States visited", int(df["state_key"].nunique()))
        state = st.selectbox("State key", sorted(df["state_key"].unique()))
        st.table(df[df["state_key"] == state][["action_name", "value", "visits", "greedy"]])
