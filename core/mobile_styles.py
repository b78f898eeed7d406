"""Mobile-friendly and receipt CSS for the app."""
import streamlit as st


def apply_mobile_styles():
    """Apply responsive layout, metric card and receipt styles."""
    st.markdown("""
    <style>
    section[data-testid="stSidebar"] {
        width: 16rem !important;
        min-width: 16rem !important;
    }

    /* Metric cards */
    div[data-testid="stMetric"] {
        background: #ffffff;
        border: 1px solid #f0f0f5;
        border-radius: 1rem;
        padding: 0.75rem 1rem;
    }

    /* Receipt block reads like thermal paper */
    .receipt-box pre, div[data-testid="stCode"] pre {
        font-family: "Courier New", monospace !important;
        font-size: 13px !important;
        max-width: 24rem;
    }

    @media (max-width: 768px) {
        /* Larger touch targets for the checkout buttons */
        .stButton button {
            min-height: 48px !important;
            font-size: 16px !important;
        }

        .block-container {
            padding-left: 1rem !important;
            padding-right: 1rem !important;
        }

        /* Prevent zoom on iOS when typing */
        input, select, textarea {
            font-size: 16px !important;
        }
    }

    @media print {
        section[data-testid="stSidebar"], header, .stButton, .stDownloadButton {
            display: none !important;
        }
    }
    </style>
    """, unsafe_allow_html=True)
