"""Table helpers for showing report updates in Streamlit."""

from __future__ import annotations

import pandas as pd
import streamlit as st

UPDATE_TABLE_COLUMNS = [
    "Ticket",
    "epic",
    "parent",
    "issuetype",
    "status",
    "summary",
    "time",
    "author",
    "kind",
    "time_spent",
    "content",
]


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="medium",
        )
    }
    return out, cfg


def render_update_table(df: pd.DataFrame, server: str):
    linked, cfg = add_ticket_link(df, server)
    cols = [c for c in UPDATE_TABLE_COLUMNS if c in linked.columns]
    st.dataframe(linked[cols], hide_index=True, column_config=cfg)
