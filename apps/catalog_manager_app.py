import os
from glob import glob

import streamlit as st
from sqlalchemy import func
from sqlmodel import select

from movie_chat.db import get_session, init_db, missing_chat_tables
from movie_chat.ingest import CATALOG_DIR, main as ingest_main
from movie_chat.models import Movie, Rating

st.set_page_config(page_title="Movie Catalog Manager", page_icon="📚")

st.title("📚 Movie Catalog Manager (CSV Files)")

st.write("Load `movies.csv` / `ratings.csv` into the catalog used for recommendations.")

# -----------------------------
# Show CSV files
# -----------------------------
st.subheader(f"📂 CSV Files in `{CATALOG_DIR}`")

csv_files = glob(os.path.join(CATALOG_DIR, "*.csv"))

if not csv_files:
    st.info(f"No `.csv` files found. Place them in `./{CATALOG_DIR}` on the host machine.")
else:
    for f in csv_files:
        st.write(f"- `{os.path.basename(f)}`")

# -----------------------------
# Run import
# -----------------------------
st.subheader("📥 Import")

replace = st.checkbox("Replace existing catalog", value=False)

if st.button("Import catalog from CSV files"):
    with st.spinner("Reading + writing catalog..."):
        counts = ingest_main(CATALOG_DIR, replace=replace)
    st.success(f"Done! {counts['movies']} movies and {counts['ratings']} ratings imported.")


# -----------------------------
# Show catalog status
# -----------------------------
st.subheader("🧠 Catalog Status")

try:
    init_db()
    missing = missing_chat_tables()
    if missing:
        st.warning("Missing chat tables: " + ", ".join(missing))

    with get_session() as session:
        movie_count = session.exec(select(func.count()).select_from(Movie)).one()
        rating_count = session.exec(select(func.count()).select_from(Rating)).one()
        top = session.exec(
            select(Movie).order_by(Movie.rating.desc().nulls_last(), Movie.id).limit(10)
        ).all()

    st.write(f"Movies: **{movie_count}**  |  Ratings: **{rating_count}**")
    if top:
        st.write("Top rated:")
        st.table([
            {"id": m.id, "title": m.title, "year": m.year, "rating": m.rating, "genres": m.genres}
            for m in top
        ])

except Exception as e:
    st.error("Cannot connect to the database.")
    st.exception(e)
