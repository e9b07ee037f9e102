import streamlit as st
from datetime import datetime

from qpcr_quant import (
    AnalysisConstants,
    GraphGenerator,
    QuantificationError,
    TableLoader,
    export_to_excel,
    predictions_to_csv,
    run_calibration,
)

UPLOAD_TYPES = ["csv", "tsv", "txt", "xlsx"]


def load_uploads(conc_file, qpcr_file):
    concentration_raw = TableLoader.load(
        conc_file,
        AnalysisConstants.CONCENTRATION_COLUMNS,
        AnalysisConstants.CONCENTRATION_TABLE,
    )
    qpcr_raw = TableLoader.load(
        qpcr_file,
        AnalysisConstants.QPCR_COLUMNS,
        AnalysisConstants.QPCR_TABLE,
    )
    return concentration_raw, qpcr_raw


def show_results(result):
    model = result.model

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Standards", model.n_points)
    col2.metric("R²", f"{model.r_squared:.4f}")
    col3.metric("Efficiency", f"{model.efficiency:.1%}")
    col4.metric("Quantified", len(result.predictions))

    for warning in result.diagnostics.get("warnings", []):
        st.warning(f"⚠️ Standard curve: {warning}")

    flagged = result.predictions[result.predictions["Outlier"] != "None"]
    if not flagged.empty:
        st.warning(
            f"⚠️ {len(flagged)} sample(s) outside the standard range: "
            + ", ".join(flagged["Sample"])
        )

    excluded = sorted(set(result.unknowns["Sample"]) - set(result.predictions["Sample"]))
    if excluded:
        st.info(f"Note: samples with missing Cq/Quantity were not quantified: {', '.join(excluded)}")

    tab1, tab2, tab3 = st.tabs(["📈 Standard Curve", "🧪 Predictions", "🔍 QC"])

    with tab1:
        st.plotly_chart(
            GraphGenerator.create_standard_curve_graph(result.standards, model),
            use_container_width=True,
        )
        st.dataframe(result.standards)

    with tab2:
        st.plotly_chart(
            GraphGenerator.create_prediction_graph(result.predictions, model),
            use_container_width=True,
        )
        st.plotly_chart(
            GraphGenerator.create_observed_vs_fitted_graph(result.predictions),
            use_container_width=True,
        )
        st.dataframe(result.predictions)

    with tab3:
        st.dataframe(result.replicate_stats)

    stamp = datetime.now().strftime("%Y%m%d_%H%M")
    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Download Results (CSV)",
            data=predictions_to_csv(result.predictions),
            file_name=f"qPCR_quantification_{stamp}.csv",
            mime="text/csv",
            type="primary",
        )
    with col2:
        st.download_button(
            label="📥 Download Excel Report",
            data=export_to_excel(result.predictions, **result.export_tables()),
            file_name=f"qPCR_quantification_{stamp}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )


def main():
    st.set_page_config(page_title="qPCR Standard Curve Quantification", layout="wide")
    st.title("🧬 qPCR Standard Curve Quantification")
    st.caption(
        "Standards are samples whose name contains 'ST'; H2O / WATER / NEGATIVE samples are treated as blanks."
    )

    col1, col2 = st.columns(2)
    with col1:
        conc_file = st.file_uploader("Concentration table", type=UPLOAD_TYPES)
    with col2:
        qpcr_file = st.file_uploader("qPCR results table", type=UPLOAD_TYPES)

    if conc_file is None or qpcr_file is None:
        st.info("Upload both tables to run the quantification.")
        return None

    try:
        with st.spinner("Fitting standard curve..."):
            concentration_raw, qpcr_raw = load_uploads(conc_file, qpcr_file)
            result = run_calibration(qpcr_raw, concentration_raw)
    except QuantificationError as e:
        st.error(f"❌ {e}")
        return None

    st.success(f"✅ {len(result.cleaned)} wells, {result.model.n_points} standards fitted")
    show_results(result)
    return result


if __name__ == "__main__":
    main()
