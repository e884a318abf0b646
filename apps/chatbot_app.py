import streamlit as st

from movie_chat import api
from movie_chat.db import init_db
from movie_chat.logging_config import setup_logging


# Initialize logging + DB schema (idempotent)
setup_logging()
init_db()

st.set_page_config(page_title="Movie Chat", page_icon="🎬")

st.title("🎬 Movie Chat")
st.write(
    "Tell the assistant what you like (\"I love sci-fi after 2010\") or "
    "dislike (\"I hate horror\"). Preferences accumulate per session and "
    "recommendations skip movies you already rated."
)


def render_recommendation(rec) -> str:
    basis = rec.basis
    lines = []
    if rec.cold_start:
        lines.append("_No preferences yet, here are the top-rated movies._")
    else:
        parts = []
        if basis.liked_genres:
            parts.append("likes " + ", ".join(basis.liked_genres))
        if basis.disliked_genres:
            parts.append("avoids " + ", ".join(basis.disliked_genres))
        if basis.year_min is not None:
            parts.append(f"from {basis.year_min}")
        if basis.year_max is not None:
            parts.append(f"up to {basis.year_max}")
        lines.append("_Based on: " + "; ".join(parts) + "_")

    if not rec.movies:
        lines.append("No matching movies found.")
    for m in rec.movies:
        lines.append(f"- **{m.title}** ({m.year or '?'}) ⭐ {m.rating or '-'} · {m.genres or ''}")
    return "\n".join(lines)


# -----------------------------
# Sidebar: user & session management
# -----------------------------
st.sidebar.header("User & Sessions")

user_id_text = st.sidebar.text_input("User ID", value="1")
try:
    identity = api.Identity(user_id=api.parse_id(user_id_text, "user_id"))
except api.ValidationError as e:
    st.sidebar.error(e.message)
    st.stop()

sessions_outcome = api.list_sessions(identity)
if not sessions_outcome.ok:
    st.error(sessions_outcome.error.message)
    st.stop()
sessions = sessions_outcome.value

if "current_session" not in st.session_state or st.session_state.get("user_id") != identity.user_id:
    st.session_state.user_id = identity.user_id
    st.session_state.current_session = sessions[0].id if sessions else None

# Create a new session
new_title = st.sidebar.text_input("New session title", value="")
if st.sidebar.button("Start new session"):
    created = api.create_session(identity, new_title)
    if created.ok:
        st.session_state.current_session = created.value
        st.rerun()
    else:
        st.sidebar.error(created.error.message)

# List existing sessions as quick buttons
st.sidebar.subheader("Existing sessions")
if sessions:
    for s in sessions:
        label = f"{s.title} · {s.started_at:%Y-%m-%d %H:%M}"
        if st.sidebar.button(label, key=f"session-{s.id}"):
            st.session_state.current_session = s.id
else:
    st.sidebar.info("No sessions yet for this user. Start one above.")

session_id = st.session_state.current_session
if session_id is None:
    st.stop()

st.write(f"**User:** `{identity.user_id}`  |  **Session:** `{session_id}`")


# -----------------------------
# Load and display conversation history
# -----------------------------
history = api.list_messages(identity, session_id)
if not history.ok:
    st.error(history.error.message)
    st.stop()

for m in history.value:
    with st.chat_message("user" if m.role == "user" else "assistant"):
        st.markdown(m.content)


# -----------------------------
# Chat input & recommendations
# -----------------------------
prompt = st.chat_input("What are you in the mood for?")

if prompt:
    # 1) Store user message (signals are extracted on the way in)
    posted = api.post_message(identity, session_id, prompt)
    if not posted.ok:
        st.error(posted.error.message)
        st.stop()
    with st.chat_message("user"):
        st.markdown(prompt)

    # 2) Recommend from everything said in this session
    with st.chat_message("assistant"):
        with st.spinner("Finding movies..."):
            rec = api.get_recommendations(identity, session_id)
            if not rec.ok:
                st.error(rec.error.message)
                st.stop()
            answer = render_recommendation(rec.value)
            st.markdown(answer)

    # 3) Persist assistant answer
    api.post_message(identity, session_id, answer, role="assistant")
