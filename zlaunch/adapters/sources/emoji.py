"""Static emoji table."""

from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy

# (character, name, keywords)
EMOJI_TABLE: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("😀", "grinning face", ("smile", "happy")),
    ("😂", "face with tears of joy", ("laugh", "lol")),
    ("🙂", "slightly smiling face", ("smile",)),
    ("😉", "winking face", ("wink",)),
    ("😊", "smiling face with smiling eyes", ("blush", "happy")),
    ("😍", "smiling face with heart-eyes", ("love", "crush")),
    ("😎", "smiling face with sunglasses", ("cool",)),
    ("🤔", "thinking face", ("hmm", "think")),
    ("😐", "neutral face", ("meh",)),
    ("🙄", "face with rolling eyes", ("eyeroll",)),
    ("😴", "sleeping face", ("sleep", "tired")),
    ("😭", "loudly crying face", ("cry", "sad")),
    ("😢", "crying face", ("sad", "tear")),
    ("😡", "pouting face", ("angry", "mad")),
    ("😱", "face screaming in fear", ("scream", "shock")),
    ("🤯", "exploding head", ("mind blown",)),
    ("🥳", "partying face", ("party", "celebrate")),
    ("🤗", "hugging face", ("hug",)),
    ("🙃", "upside-down face", ("sarcasm",)),
    ("😅", "grinning face with sweat", ("relief", "nervous")),
    ("👍", "thumbs up", ("yes", "ok", "like")),
    ("👎", "thumbs down", ("no", "dislike")),
    ("👏", "clapping hands", ("applause", "bravo")),
    ("🙏", "folded hands", ("please", "thanks", "pray")),
    ("👋", "waving hand", ("hello", "bye", "wave")),
    ("👀", "eyes", ("look", "see")),
    ("💪", "flexed biceps", ("strong", "muscle")),
    ("🤝", "handshake", ("deal", "agreement")),
    ("✌️", "victory hand", ("peace",)),
    ("🤞", "crossed fingers", ("luck", "hope")),
    ("❤️", "red heart", ("love",)),
    ("💔", "broken heart", ("heartbreak",)),
    ("🔥", "fire", ("hot", "lit")),
    ("✨", "sparkles", ("shiny", "magic")),
    ("⭐", "star", ("favorite",)),
    ("🎉", "party popper", ("tada", "celebrate")),
    ("💯", "hundred points", ("perfect", "100")),
    ("✅", "check mark button", ("done", "yes")),
    ("❌", "cross mark", ("no", "wrong")),
    ("⚠️", "warning", ("caution",)),
    ("❓", "question mark", ("question",)),
    ("💡", "light bulb", ("idea",)),
    ("🚀", "rocket", ("launch", "ship")),
    ("🐛", "bug", ("insect", "defect")),
    ("🔧", "wrench", ("tool", "fix")),
    ("📌", "pushpin", ("pin",)),
    ("📎", "paperclip", ("attach",)),
    ("🔒", "locked", ("lock", "secure")),
    ("🔑", "key", ("password",)),
    ("📅", "calendar", ("date",)),
    ("⏰", "alarm clock", ("time",)),
    ("☕", "hot beverage", ("coffee", "tea")),
    ("🍕", "pizza", ("food",)),
    ("🍺", "beer mug", ("drink", "beer")),
    ("🎂", "birthday cake", ("birthday",)),
    ("🐱", "cat face", ("cat", "pet")),
    ("🐶", "dog face", ("dog", "pet")),
    ("🌈", "rainbow", ("pride",)),
    ("☀️", "sun", ("sunny", "weather")),
    ("🌙", "crescent moon", ("night",)),
    ("🌧️", "cloud with rain", ("rain", "weather")),
    ("💻", "laptop", ("computer",)),
    ("📝", "memo", ("note", "write")),
    ("📦", "package", ("box", "ship")),
    ("🤷", "person shrugging", ("shrug", "whatever")),
    ("🤦", "person facepalming", ("facepalm",)),
)


class EmojiSource:
    """Index source over the static emoji table."""

    module = Module.EMOJIS
    policy = RefreshPolicy.STATIC

    def build(self) -> list[Entry]:
        entries = []
        for char, name, keywords in EMOJI_TABLE:
            slug = "-".join(name.split())
            entries.append(
                Entry(
                    id=f"emoji-{slug}",
                    title=f"{char} {name}",
                    subtitle=", ".join(keywords),
                    icon=char,
                    module=Module.EMOJIS,
                    action=ActionPayload(kind=ActionKind.EMOJI, value=char),
                )
            )
        return entries
