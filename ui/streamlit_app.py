import os
from typing import Any, Dict

import requests
import streamlit as st


API_URL = os.getenv("PAGECHAT_API_URL", "http://localhost:8000").rstrip("/")
# One panel session stands in for one browser tab.
TAB_ID = int(os.getenv("PAGECHAT_TAB_ID", "1"))


def api_get(path: str, **kwargs):
    return requests.get(f"{API_URL}{path}", timeout=30, **kwargs)


def api_post(path: str, **kwargs):
    return requests.post(f"{API_URL}{path}", timeout=600, **kwargs)


def api_put(path: str, **kwargs):
    return requests.put(f"{API_URL}{path}", timeout=30, **kwargs)


def list_models() -> Dict[str, Any]:
    try:
        r = api_get("/models")
        r.raise_for_status()
        return r.json()
    except requests.RequestException:
        return {"models": [], "selected": None, "available": False}


def select_model(model: str) -> None:
    r = api_put("/models/selected", json={"model": model})
    r.raise_for_status()


def navigate(url: str) -> bool:
    r = api_post("/pages/navigate", json={"tab_id": TAB_ID, "url": url})
    r.raise_for_status()
    return bool(r.json().get("reload"))


def summarize_page(url: str, text: str | None) -> Dict[str, Any]:
    payload = {"tab_id": TAB_ID, "url": url or None, "text": text}
    r = api_post("/summary", json=payload)
    r.raise_for_status()
    return r.json()


def chat_api(question: str) -> str:
    r = api_post("/chat", json={"tab_id": TAB_ID, "question": question})
    if r.status_code == 409:
        return str(r.json().get("detail") or "Please wait...")
    r.raise_for_status()
    return r.json().get("answer") or ""


def render_content(content: str) -> None:
    """Markdown with raw HTML escaped; plain text if rendering blows up."""
    try:
        st.markdown(content, unsafe_allow_html=False)
    except Exception:
        st.text(content)


st.set_page_config(page_title="Page Chat", page_icon="📝", layout="centered")

if "page" not in st.session_state:
    st.session_state.page = None  # latest page-view payload from the API
if "messages" not in st.session_state:
    st.session_state.messages = []  # list[dict(role, content)]
if "url" not in st.session_state:
    st.session_state.url = ""


# Model picker
def on_model_picked() -> None:
    # Runs only when the user changes the selection, never on a plain rerun.
    st.session_state.model_error = None
    try:
        select_model(st.session_state.model_picker)
    except requests.RequestException as e:
        st.session_state.model_error = f"Could not switch model: {e}"


models = list_models()
if not models.get("models"):
    st.selectbox("Model", ["No models found"], disabled=True)
else:
    options = models["models"]
    selected = models.get("selected")
    index = options.index(selected) if selected in options else 0
    st.selectbox("Model", options, index=index, key="model_picker", on_change=on_model_picked)
    if st.session_state.get("model_error"):
        st.error(st.session_state.model_error)


# Page input
url = st.text_input("Page URL", value=st.session_state.url)
pasted = st.text_area("…or paste the page text", height=120)
go = st.button("Summarize", use_container_width=True, disabled=not (url or pasted))

if go:
    new_page = True
    if url and not pasted:
        try:
            new_page = navigate(url) or st.session_state.page is None
        except requests.RequestException:
            new_page = True
    if new_page:
        st.session_state.url = url
        st.session_state.messages = []
        with st.spinner("Summarizing..."):
            try:
                st.session_state.page = summarize_page(url, pasted or None)
            except requests.RequestException as e:
                st.session_state.page = {"summary": f"Summarize failed: {e}", "chat_enabled": False}


# Summary slot
page = st.session_state.page
if page:
    st.markdown("### Summary")
    render_content(page.get("summary") or "")
    failed = page.get("failed_chunks") or []
    if failed:
        st.caption(f"{len(failed)} of {page.get('chunks')} part(s) of the page could not be summarized.")


# Chat area
for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        render_content(msg["content"])

chat_enabled = bool(page and page.get("chat_enabled"))
user_text = st.chat_input("Ask anything…" if chat_enabled else "Please wait...", disabled=not chat_enabled)
if user_text:
    st.session_state.messages.append({"role": "user", "content": user_text})
    with st.chat_message("user"):
        render_content(user_text)

    with st.chat_message("assistant"):
        with st.spinner("Thinking..."):
            try:
                answer = chat_api(user_text) or "I'm not sure how to respond to that."
            except requests.RequestException as e:
                answer = f"(error) {e}"
            render_content(answer)

    st.session_state.messages.append({"role": "assistant", "content": answer})
