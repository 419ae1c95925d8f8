# src/pomodoro_todo/cli/messages.py

"""User-facing strings per locale. Keys are shared; missing keys fall back to English."""

from __future__ import annotations

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "empty_list": "No tasks yet. Add one with /add <text> or just type it.",
        "header": (
            "Tasks: {remaining} remaining / {completed} done / {total} total ({percent}%), "
            "{pomodoros} pomodoros completed"
        ),
        "added": "Added: {text}",
        "deleted": "Deleted: {text}",
        "completed": "Completed: {text}",
        "reopened": "Reopened: {text}",
        "estimate": "Estimate for \"{text}\": {n} pomodoros",
        "started": "Started \"{text}\" ({phase} {time})",
        "already_running": "\"{text}\" is already running.",
        "is_completed": "\"{text}\" is completed; reopen it with /done first.",
        "paused": "Paused \"{text}\" at {time}",
        "not_running": "\"{text}\" is not running.",
        "reset": "Reset \"{text}\" to work {time}",
        "empty_text": "Task text must not be empty.",
        "no_such_task": "No such task: {ref}",
        "usage": "Usage: {usage}",
        "import_none": "No tasks due today were found in {path}.",
        "import_done": "Imported {n} tasks for today ({mode}).",
        "import_failed": "Could not read {path}: {error}",
        "language": "Language: {lang}",
        "language_unknown": "Unknown language {lang}. Available: {available}",
        "work_done": "Pomodoro finished for \"{text}\" ({done}/{est}). Time for a break!",
        "break_done": "Break is over for \"{text}\". Back to work!",
        "celebrate": "All tasks are done. Great job!",
        "about": (
            "{app}: a pomodoro task list.\n"
            "  Work {work} / break {brk}; one timer runs at a time.\n"
            "  /import reads today's VTODO entries from an .ics calendar export."
        ),
        "status": (
            "Status:\n"
            "  Store: {store}\n"
            "  Language: {lang}\n"
            "  Import mode: {mode}\n"
            "  Running: {running}"
        ),
        "phase_work": "work",
        "phase_break": "break",
        "none": "-",
    },
    "ja": {
        "empty_list": "タスクがありません。/add <テキスト> で追加してください。",
        "header": (
            "タスク: 残り {remaining} / 完了 {completed} / 全 {total} ({percent}%) / "
            "完了ポモドーロ {pomodoros}"
        ),
        "added": "追加しました: {text}",
        "deleted": "削除しました: {text}",
        "completed": "完了しました: {text}",
        "reopened": "未完了に戻しました: {text}",
        "estimate": "「{text}」の見積もり: {n} ポモドーロ",
        "started": "「{text}」を開始しました ({phase} {time})",
        "already_running": "「{text}」は既に実行中です。",
        "is_completed": "「{text}」は完了済みです。/done で未完了に戻してください。",
        "paused": "「{text}」を一時停止しました ({time})",
        "not_running": "「{text}」は実行されていません。",
        "reset": "「{text}」をリセットしました (作業 {time})",
        "empty_text": "タスク名を入力してください。",
        "no_such_task": "タスクが見つかりません: {ref}",
        "usage": "使い方: {usage}",
        "import_none": "{path} に今日のTODOが見つかりませんでした。",
        "import_done": "{n}件の今日のTODOを読み込みました！ ({mode})",
        "import_failed": "{path} を読み込めませんでした: {error}",
        "language": "言語: {lang}",
        "language_unknown": "未対応の言語です: {lang} (対応: {available})",
        "work_done": "「{text}」のポモドーロが終わりました ({done}/{est})。休憩しましょう！",
        "break_done": "「{text}」の休憩が終わりました。作業に戻りましょう！",
        "celebrate": "すべてのタスクが完了しました。おめでとうございます！",
        "phase_work": "作業",
        "phase_break": "休憩",
    },
}


def t(lang: str, key: str, /, **kwargs: object) -> str:
    table = MESSAGES.get(lang) or MESSAGES["en"]
    template = table.get(key) or MESSAGES["en"].get(key) or key
    return template.format(**kwargs)
