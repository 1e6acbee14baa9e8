"""
Heuristic task categorization.

Two ordered rule tables: strong rules are tried first and win outright;
support rules only apply when no strong rule matched. Patterns cover
English and Russian task titles.
"""

import re
from typing import List, Optional, Tuple

from ..scheduling.core.constants import TaskCategory

GAMES_TERMS = r"игра?(ть)?|\bcs\b|дота|майнкрафт|роблокс|консоль|\bgam(e|es|ing)\b|minecraft|roblox|fortnite|\bxbox\b|playstation"


class CategoryRule:
    def __init__(self, category: TaskCategory, confidence: float, patterns: List[str],
                 excludes: Optional[List[str]] = None):
        self.category = category
        self.confidence = confidence
        self.patterns = [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
        self.excludes = [re.compile(pattern, re.IGNORECASE) for pattern in (excludes or [])]

    def matches(self, text: str) -> bool:
        if not any(pattern.search(text) for pattern in self.patterns):
            return False
        return not any(pattern.search(text) for pattern in self.excludes)


STRONG_RULES = [
    CategoryRule(TaskCategory.LEARNING, 0.95, [
        r"домашн(яя|ее|ие)\s*(работа|задани)", r"дз\b", r"урок", r"учеб", r"школ", r"матем", r"экзам",
        r"англ", r"язык", r"учить",
        r"\bhomework\b", r"\bschool\b", r"\blessons?\b", r"\bexam", r"\bmath", r"\bstudy", r"\bgrammar\b",
    ]),
    CategoryRule(TaskCategory.SPORT_ACTIVITY, 0.92, [
        r"фитнес", r"трениров", r"кардио", r"\bбег", r"плав", r"футбол", r"теннис", r"баскетбол",
        r"зарядк", r"спорт", r"секц", r"зал\b",
        r"\bworkout", r"\bgym\b", r"\brun(ning)?\b", r"\bswim", r"\bfootball\b", r"\bsoccer\b",
        r"\btennis\b", r"\bbasketball\b", r"\bcardio\b", r"\bfitness\b", r"\btraining\b",
    ], excludes=[r"растяж", r"йог", r"\bstretch", r"\byoga\b"]),
    CategoryRule(TaskCategory.OUTDOOR_PLAY, 0.9, [
        r"прогул", r"гуля", r"парк", r"детск.+площад", r"велосипед", r"самокат", r"поход", r"пикник",
        r"на свежем воздухе", r"на улице",
        r"\bwalk", r"\bpark\b", r"\bplayground\b", r"\bbike\b", r"\bcycling\b", r"\bhike", r"\bpicnic\b",
        r"\boutside\b", r"\boutdoors?\b",
    ]),
    CategoryRule(TaskCategory.CREATIVE, 0.88, [
        r"музык", r"пианино|фортепиано", r"гитар", r"рисов", r"дизайн", r"поделк", r"творч", r"стих",
        r"петь|хор", r"фото", r"кружок",
        r"\bmusic\b", r"\bpiano\b", r"\bguitar\b", r"\bdraw", r"\bpaint", r"\bdesign\b", r"\bcraft",
        r"\bpoem", r"\bsing", r"\bphoto",
    ]),
    CategoryRule(TaskCategory.RELAXING, 0.9, [
        r"отдых", r"медитац", r"дыхани", r"растяж", r"йог", r"читать", r"книга", r"кино", r"сериал",
        r"релакс",
        r"\brest\b", r"\brelax", r"\bmeditat", r"\bbreath", r"\bstretch", r"\byoga\b", r"\bread(ing)?\b",
        r"\bbook\b", r"\bmovie\b", r"\bseries\b", r"\bnap\b",
    ], excludes=[r"учеб|курс|матем", r"\bcourse\b|\bstudy\b|\bmath"]),
    CategoryRule(TaskCategory.GAMES, 0.92, [GAMES_TERMS, r"компьютер.*игр", r"\bvideo ?games?\b"]),
    CategoryRule(TaskCategory.HEALTHCARE, 0.9, [
        r"завтрак|обед|ужин|полдник", r"поесть|еда|при[её]м пищи", r"врач|педиатр", r"стоматолог",
        r"клиник", r"больниц", r"здоров", r"витамин", r"привив", r"массаж",
        r"\bbreakfast\b|\blunch\b|\bdinner\b|\bsupper\b", r"\bdoctor\b", r"\bdentist\b", r"\bclinic\b",
        r"\bhospital\b", r"\bvitamin", r"\bmedicine\b", r"\btherapy\b", r"\bcheck-?up\b",
    ]),
    CategoryRule(TaskCategory.HOUSEHOLD, 0.88, [
        r"убор", r"пылесос", r"посуд", r"стирк", r"домашн(ие)? дела", r"по дому", r"полить цветы",
        r"починить", r"ремонт",
        r"\bclean", r"\bvacuum", r"\bdishes\b", r"\blaundry\b", r"\bchores?\b", r"\btidy\b",
        r"\bwater the plants\b", r"\brepair\b", r"\bfix\b", r"\bcook(ing)?\b",
    ]),
    CategoryRule(TaskCategory.ADMIN_ERRANDS, 0.88, [
        r"магазин|закуп", r"купить", r"поручени", r"банк", r"оплат", r"сч[её]т|налог", r"документ",
        r"паспорт", r"почт[аы]",
        r"\bshop", r"\bgrocer", r"\bbuy\b", r"\berrand", r"\bbank\b", r"\bpay\b", r"\bbills?\b",
        r"\btax", r"\bdocuments?\b", r"\bpassport\b", r"\bpost office\b", r"\bemail",
    ]),
    CategoryRule(TaskCategory.SOCIAL, 0.85, [
        r"встре?ч", r"друз", r"звон", r"вечерин", r"сем(ья|ей)", r"родител", r"свидан", r"кофе",
        r"\bmeet", r"\bfriends?\b", r"\bcall\b", r"\bparty\b", r"\bfamily\b", r"\bparents\b", r"\bdate\b",
        r"\bcoffee\b",
    ]),
    CategoryRule(TaskCategory.DEEP_WORK, 0.84, [
        r"проект", r"исслед", r"анализ", r"разработ|программ", r"отч[её]т", r"презентац", r"стратег",
        r"доклад", r"диплом",
        r"\bproject\b", r"\bresearch\b", r"\banaly", r"\bcod(e|ing)\b", r"\bprogramm", r"\breport\b",
        r"\bpresentation\b", r"\bstrategy\b", r"\bthesis\b", r"\bfocus\b",
    ]),
    CategoryRule(TaskCategory.COMMUTE, 0.85, [
        r"дорог[ае]", r"поездк", r"ехать", r"поезд", r"автобус", r"метро", r"перел[её]т", r"транспорт",
        r"\bcommute\b", r"\bdrive\b", r"\btrain\b", r"\bbus\b", r"\bsubway\b", r"\bmetro\b", r"\bflight\b",
        r"\btravel\b",
    ]),
]

SUPPORT_RULES = [
    CategoryRule(TaskCategory.LEARNING, 0.78, [r"учеб", r"курс", r"подготовк", r"заняти", r"\bcourse\b", r"\blearn"]),
    CategoryRule(TaskCategory.SPORT_ACTIVITY, 0.76, [r"трен", r"упражн", r"физкультур", r"\bexercise\b", r"\bsport"]),
    CategoryRule(TaskCategory.RELAXING, 0.74, [r"сон", r"почитать", r"телевизор", r"\bsleep\b", r"\btv\b"],
                 excludes=[r"учеб|курс"]),
    CategoryRule(TaskCategory.GAMES, 0.75, [r"компьютер", r"\bcomputer\b"]),
    CategoryRule(TaskCategory.HEALTHCARE, 0.76, [r"самочувств", r"питани", r"\bhealth", r"\beat\b", r"\bmeal\b"]),
    CategoryRule(TaskCategory.HOUSEHOLD, 0.72, [r"домов", r"порядок", r"организ", r"\bhome\b", r"\bhouse\b"]),
    CategoryRule(TaskCategory.ADMIN_ERRANDS, 0.72, [r"дела", r"оформ", r"плат[еи]", r"\badmin\b", r"\bform\b"]),
    CategoryRule(TaskCategory.CREATIVE, 0.72, [r"искусств", r"\bart\b", r"\bwrite\b", r"\bwriting\b"]),
    CategoryRule(TaskCategory.SOCIAL, 0.7, [r"общен", r"команд", r"беседа", r"\bteam\b", r"\bchat\b"]),
    CategoryRule(TaskCategory.OUTDOOR_PLAY, 0.72, [r"свежем воздухе", r"\bfresh air\b"]),
    CategoryRule(TaskCategory.DEEP_WORK, 0.7, [r"работ", r"концентрац", r"сосредоточ", r"\bwork\b", r"\bdeep\b"]),
    CategoryRule(TaskCategory.COMMUTE, 0.7, [r"путь", r"еду\b", r"\btrip\b", r"\bway to\b"]),
]


def normalize_task_text(title: str, description: Optional[str] = None) -> str:
    text = f"{title or ''} {description or ''}".replace("ё", "е").replace("Ё", "е")
    return re.sub(r"\s+", " ", text).strip().lower()


def _match(text: str, rules: List[CategoryRule]) -> Optional[Tuple[TaskCategory, float]]:
    for rule in rules:
        if rule.matches(text):
            return rule.category, rule.confidence
    return None


def categorize_with_heuristics(title: str, description: Optional[str] = None,
                               strong_only: bool = False) -> Optional[Tuple[TaskCategory, float]]:
    """Return ``(category, confidence)`` for the first matching rule, or None."""
    text = normalize_task_text(title, description)
    if not text:
        return None
    strong = _match(text, STRONG_RULES)
    if strong or strong_only:
        return strong
    return _match(text, SUPPORT_RULES)
