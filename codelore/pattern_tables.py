"""Declarative pattern/variant tables per language.

Every variant table is an ordered dict: a file is classified under the first
variant whose matcher hits, so entry order is part of the behaviour.
"""

import re

from codelore.models import PatternDefinition, Relation, VariantDefinition
from codelore.rendering import make_title

IGN = re.IGNORECASE
MULTI = re.MULTILINE


def _v(label: str, pattern: str, flags: int = 0, *, boilerplate: bool = False) -> VariantDefinition:
    return VariantDefinition(label=label, matcher=re.compile(pattern, flags), boilerplate=boilerplate)


def _p(name: str, label: str, main: str, variants: dict[str, VariantDefinition] | None = None, *,
       flags: int = 0, min_count: int = 1, relations: list[Relation] | None = None) -> PatternDefinition:
    return PatternDefinition(
        name=name,
        label=label,
        main_matcher=re.compile(main, flags),
        min_count=min_count,
        variants=variants or {},
        relations=relations or [],
    )


# ─── code-pattern ────────────────────────────────────────────

OBJC_CODE_PATTERNS = {
    "singleton": _p("singleton", "Singleton", r"\bsharedInstance\b|dispatch_once", {
        "dispatch_once": _v("dispatch_once", r"dispatch_once\s*\("),
        "static_lazy": _v("static variable, lazy init", r"static\s+\w+\s*\*\s*_?\w*(instance|shared)\b", IGN),
    }),
    "protocol-delegate": _p("protocol-delegate", "Protocol delegate", r"@protocol\s+\w+Delegate|<\w+Delegate>", {
        "responds_check": _v("respondsToSelector guarded call", r"respondsToSelector"),
        "direct_call": _v("direct delegate call", r"\bself\.delegate\b"),
        "optional": _v("@optional method declarations", r"@optional"),
    }),
    "category": _p("category", "Category extension", r"@interface\s+\w+\s*\(\w*\)", {
        "named": _v("named category", r"@interface\s+\w+\s*\(\w+\)"),
        "anonymous": _v("anonymous category (class extension)", r"@interface\s+\w+\s*\(\s*\)"),
    }),
    "factory": _p("factory", "Factory method", r"\+\s*\(instancetype\)|initWith\w+", {
        "class_method": _v("+ (instancetype) class factory", r"\+\s*\(instancetype\)\s*\w+"),
        "init_with": _v("initWith... convenience initializer", r"-\s*\(instancetype\)\s*initWith"),
    }),
    # `return self` alone is excluded from the main matcher: every ObjC init has it
    "builder": _p("builder", "Builder", r"\bBuilder\b", {
        "method_chain": _v("method chaining (return self)", r"return\s+self\s*;"),
        "config_block": _v("configuration block", r"\(\s*void\s*\(\s*\^\s*\)"),
    }, min_count=2),
    "observer": _p("observer", "Observer", r"\bNSNotificationCenter\b|addObserver:|KVO", {
        "notif_selector": _v("notification + selector", r"addObserver:.*selector:"),
        "notif_block": _v("notification + block", r"addObserverForName:.*usingBlock:"),
        "kvo": _v("KVO observeValue", r"addObserver:.*forKeyPath:"),
    }),
    "coordinator": _p(
        "coordinator", "Coordinator / router navigation",
        r"(@interface|@protocol|@implementation)\s+\w*(Coordinator|Router|Navigator)", {
            "coordinator": _v("Coordinator class", r"\w*Coordinator\b"),
            "router": _v("Router", r"\w*Router\b"),
            "navigator": _v("Navigator", r"\w*Navigator\b"),
        }, min_count=2),
}

SWIFT_CODE_PATTERNS = {
    "singleton": _p("singleton", "Singleton", r"\bstatic\s+(let|var)\s+shared\b", {
        "static_let": _v("static let shared", r"static\s+let\s+shared\b"),
        "private_init": _v("private init() guard", r"private\s+init\s*\(\s*\)"),
    }),
    "protocol-delegate": _p("protocol-delegate", "Protocol delegate", r"protocol\s+\w+Delegate|\.delegate\s*=", {
        "optional_chain": _v("delegate?.method optional chaining", r"delegate\?\.\w+"),
        "weak_delegate": _v("weak var delegate", r"weak\s+var\s+\w*delegate", IGN),
        "protocol_decl": _v("protocol ...Delegate declaration", r"protocol\s+\w+Delegate"),
    }),
    "factory": _p("factory", "Factory method", r"class\s+func\s+make|static\s+(func|create|from)|convenience\s+init", {
        "class_func": _v("class func make...", r"class\s+func\s+\w*[Mm]ake"),
        "static_func": _v("static func create/from", r"static\s+func\s+\w*(create|from|with)", IGN),
        "convenience_init": _v("convenience init", r"convenience\s+init"),
    }),
    "builder": _p("builder", "Builder", r"\bBuilder\b|func\s+\w+\([^)]*\)\s*->\s*Self|@resultBuilder", {
        "fluent": _v("-> Self fluent builder", r"->\s*Self"),
        "result_builder": _v("@resultBuilder", r"@resultBuilder"),
    }, min_count=2),
    "observer": _p("observer", "Observer", r"\bNotificationCenter\b|@Published\b|willSet\s*\{|didSet\s*\{", {
        "notif_closure": _v("NotificationCenter closure", r"addObserver\(forName:"),
        "published": _v("@Published property", r"@Published\s"),
        "did_set": _v("willSet/didSet observation", r"(willSet|didSet)\s*\{"),
        "combine": _v("Combine .sink", r"\.sink\s*\{"),
    }),
    "coordinator": _p(
        "coordinator", "Coordinator / router navigation",
        r"\bCoordinator\b|protocol\s+\w*Coordinator|class\s+\w*(Router|Navigator)", {
            "protocol_coord": _v("Coordinator protocol", r"protocol\s+\w*Coordinator"),
            "class_coord": _v("Coordinator class", r"class\s+\w*Coordinator"),
            "router": _v("Router", r"class\s+\w*Router"),
        }, min_count=2),
}

GENERIC_CODE_PATTERNS = {
    "singleton": _p("singleton", "Singleton", r"\bgetInstance\b|\bshared\b|\binstance\b", {
        "get_instance": _v("getInstance()", r"getInstance\s*\("),
        "shared_prop": _v("shared property", r"\bshared\b"),
    }),
}


def code_patterns(lang: str) -> dict[str, PatternDefinition]:
    if lang == "objectivec":
        return OBJC_CODE_PATTERNS
    if lang == "swift":
        return SWIFT_CODE_PATTERNS
    return GENERIC_CODE_PATTERNS


# ─── best-practice ───────────────────────────────────────────

def _bp_relations(key: str) -> list[Relation]:
    if key == "errorHandling":
        return [Relation(type="DEPENDS_ON", target=make_title("code-standard", "naming"),
                         description="Error domains follow the class naming convention")]
    if key == "memoryMgmt":
        return [Relation(type="RELATED", target=make_title("best-practice", "concurrency"),
                         description="weak self captures are combined with async dispatch")]
    if key == "concurrency":
        return [Relation(type="EXTENDS", target=make_title("best-practice", "memory-mgmt"),
                         description="weak self pattern inside dispatched blocks")]
    return []


OBJC_BEST_PRACTICES = {
    "errorHandling": _p(
        "errorHandling", "Error handling",
        r"\b(NSError\s*\*|@try\b|@catch\b|@throw\b|@finally\b|error:\s*\(NSError|if\s*\(\s*error\b|if\s*\(\s*!\s*\w+\s*\))", {
            "nserror_out": _v("NSError ** out-parameter", r"NSError\s*\*\s*_*\w*\s*\*|error:\s*\(NSError\s*\*\s*_*\w*\s*\*"),
            "try_catch": _v("@try / @catch", r"@try\b|@catch\b"),
            "nil_check": _v("early nil / error check", r"if\s*\(\s*error\b|if\s*\(\s*!\s*\w+\s*\)", boilerplate=True),
        }, relations=_bp_relations("errorHandling")),
    "concurrency": _p(
        "concurrency", "Concurrency",
        r"\b(dispatch_async|dispatch_sync|dispatch_queue_create|dispatch_group|dispatch_semaphore|NSOperation|NSThread"
        r"|@synchronized|performSelector.*Thread|dispatch_barrier)", {
            "dispatch_main": _v("dispatch_async to main queue", r"dispatch_async\s*\(\s*dispatch_get_main_queue"),
            "dispatch_global": _v("dispatch_async to global queue", r"dispatch_async\s*\(\s*dispatch_get_global_queue|dispatch_queue_create"),
            "dispatch_group": _v("dispatch_group coordination", r"dispatch_group_"),
            "semaphore": _v("dispatch_semaphore", r"dispatch_semaphore_"),
            "nsoperation": _v("NSOperation / NSOperationQueue", r"NSOperation"),
            "synchronized": _v("@synchronized lock", r"@synchronized"),
        }, relations=_bp_relations("concurrency")),
    "memoryMgmt": _p(
        "memoryMgmt", "Memory management",
        r"\b(__weak|__strong|__unsafe_unretained|weakSelf|strongSelf|typeof\(self\)|__block|dealloc\b|autoreleasepool|removeObserver)", {
            "weak_strong": _v("__weak / __strong self dance", r"__weak\s+(typeof|__typeof)|__strong\s+(typeof|__typeof)|__weak\s+\w+\s*\*\s*weakSelf"),
            "weakify": _v("@weakify / @strongify", r"@weakify|@strongify|WEAKSELF|weakify\("),
            "dealloc_cleanup": _v("dealloc cleanup", r"-\s*\(void\)\s*dealloc"),
            "autoreleasepool": _v("@autoreleasepool", r"@autoreleasepool"),
        }, relations=_bp_relations("memoryMgmt")),
}

SWIFT_BEST_PRACTICES = {
    "errorHandling": _p(
        "errorHandling", "Error handling",
        r"\b(guard .+ else|throw\s|catch\s*[{(]|do\s*\{|Result<|try[?!]?\s)", {
            "do_try_catch": _v("do / try / catch", r"\bdo\s*\{"),
            "result_type": _v("Result<Success, Failure>", r"Result<"),
            "optional_try": _v("try? / try!", r"\btry[?!]"),
            "guard_let": _v("guard let ... else", r"guard\s+(let|var)\s+.+else", boilerplate=True),
        }, relations=_bp_relations("errorHandling")),
    "concurrency": _p(
        "concurrency", "Concurrency",
        r"\b(async\b|await\b|Task\s*\{|Task\.detached|actor\b|@MainActor|@Sendable|DispatchQueue|TaskGroup)", {
            "async_await": _v("async / await", r"\bawait\s"),
            "task_block": _v("Task { } / Task.detached", r"\bTask\s*\{|Task\.detached"),
            "actor": _v("actor / @MainActor isolation", r"\bactor\s+\w+|@MainActor"),
            "dispatch_main": _v("DispatchQueue.main", r"DispatchQueue\.main"),
            "dispatch_global": _v("DispatchQueue.global / custom queue", r"DispatchQueue\.global|DispatchQueue\s*\(\s*label:"),
        }, relations=_bp_relations("concurrency")),
    "memoryMgmt": _p(
        "memoryMgmt", "Memory management",
        r"\b(\[weak\s|weak\s+var|unowned\s|autoreleasepool|deinit\b|\[unowned\s)", {
            "guard_self": _v("[weak self] + guard let self", r"guard\s+let\s+(self|strongSelf)\s*=\s*self"),
            "weak_self": _v("[weak self] capture", r"\[weak\s+self\]"),
            "unowned": _v("[unowned self] capture", r"\[unowned\s+self\]|unowned\s+(let|var)"),
            "deinit": _v("deinit cleanup", r"\bdeinit\s*\{", boilerplate=True),
        }, relations=_bp_relations("memoryMgmt")),
}

JS_BEST_PRACTICES = {
    "errorHandling": _p(
        "errorHandling", "Error handling",
        r"\b(try\s*\{|catch\s*\(|throw\s+new|\.catch\(|Promise\.reject|if\s*\(\s*err\b)", {
            "try_catch": _v("try / catch", r"\btry\s*\{"),
            "promise_catch": _v("promise .catch()", r"\.catch\("),
            "error_first": _v("error-first callback", r"if\s*\(\s*err\b"),
        }, relations=_bp_relations("errorHandling")),
    "concurrency": _p(
        "concurrency", "Concurrency",
        r"\b(async\s+function|await\s|Promise\.all|Promise\.allSettled|new\s+Worker|setTimeout|setInterval|process\.nextTick)", {
            "promise_all": _v("Promise.all / allSettled fan-out", r"Promise\.all(Settled)?\s*\("),
            "async_await": _v("async / await", r"\bawait\s"),
            "timers": _v("timers", r"setTimeout|setInterval", boilerplate=True),
        }, relations=_bp_relations("concurrency")),
    "memoryMgmt": _p(
        "memoryMgmt", "Resource management",
        r"\b(\.close\(\)|\.destroy\(\)|\.dispose\(\)|finally\s*\{|AbortController|clearTimeout|clearInterval|removeEventListener)", {
            "finally_cleanup": _v("finally cleanup", r"finally\s*\{"),
            "abort_controller": _v("AbortController", r"AbortController"),
            "dispose": _v("explicit close/dispose", r"\.(close|destroy|dispose)\(\)"),
        }, relations=_bp_relations("memoryMgmt")),
}

PYTHON_BEST_PRACTICES = {
    "errorHandling": _p(
        "errorHandling", "Error handling",
        r"\b(try:|except\s|raise\s|finally:|with\s.*as\s)", {
            "specific_except": _v("except SpecificError", r"except\s+\(?[A-Z]\w*"),
            "raise_from": _v("raise ... from ...", r"raise\s+\w.*\sfrom\s"),
            "bare_raise": _v("raise", r"\braise\s", boilerplate=True),
        }, relations=_bp_relations("errorHandling")),
    "concurrency": _p(
        "concurrency", "Concurrency",
        r"\b(async\s+def|await\s|asyncio\.|threading\.|multiprocessing\.|concurrent\.futures|Lock\(\)|Semaphore\()", {
            "asyncio_gather": _v("asyncio.gather fan-out", r"asyncio\.gather"),
            "asyncio": _v("async def / await", r"async\s+def|await\s"),
            "threads": _v("threading / concurrent.futures", r"threading\.|concurrent\.futures|ThreadPoolExecutor"),
            "processes": _v("multiprocessing", r"multiprocessing\."),
        }, relations=_bp_relations("concurrency")),
    "memoryMgmt": _p(
        "memoryMgmt", "Resource management",
        r"\b(with\s+open|__enter__|__exit__|contextmanager|\.close\(\)|atexit|weakref|gc\.collect)", {
            "with_open": _v("with open(...)", r"with\s+open\s*\("),
            "context_manager": _v("custom context manager", r"__enter__|@contextmanager|contextmanager"),
            "explicit_close": _v("explicit .close()", r"\.close\(\)"),
        }, relations=_bp_relations("memoryMgmt")),
}

DEFAULT_BEST_PRACTICES = {
    "errorHandling": _p("errorHandling", "Error handling", r"\b(try|catch|throw|except|raise|error|Error)\b",
                        relations=_bp_relations("errorHandling")),
    "concurrency": _p("concurrency", "Concurrency", r"\b(async|await|thread|Thread|dispatch|concurrent|parallel|mutex|lock|Lock)\b",
                      relations=_bp_relations("concurrency")),
    "memoryMgmt": _p("memoryMgmt", "Memory / resource management",
                     r"\b(close|dispose|destroy|cleanup|dealloc|free|release|finalize|defer)\b",
                     relations=_bp_relations("memoryMgmt")),
}

BEST_PRACTICE_SUBTOPICS = {"errorHandling": "error-handling", "concurrency": "concurrency", "memoryMgmt": "memory-mgmt"}


def best_practice_patterns(lang: str) -> dict[str, PatternDefinition]:
    if lang == "objectivec":
        return OBJC_BEST_PRACTICES
    if lang == "swift":
        return SWIFT_BEST_PRACTICES
    if lang in ("javascript", "typescript"):
        return JS_BEST_PRACTICES
    if lang == "python":
        return PYTHON_BEST_PRACTICES
    return DEFAULT_BEST_PRACTICES


LOGGING_VARIANTS = {
    "objectivec": {
        "NSLog": _v("NSLog()", r"\bNSLog\s*\("),
        "CocoaLumberjack": _v("CocoaLumberjack (DDLog)", r"\bDDLog(Verbose|Debug|Info|Warn|Error)\b"),
        "OSLog": _v("os_log / os_signpost", r"\bos_log\b|\bos_signpost\b"),
    },
    "swift": {
        "print": _v("print()", r"\bprint\s*\("),
        "Logger": _v("Logger() / os_log", r"\bLogger\s*\(|\bos_log\b"),
        "CocoaLumberjack": _v("CocoaLumberjack (DDLog)", r"\bDDLog\w+\b"),
        "SwiftyBeaver": _v("SwiftyBeaver", r"\blog\.(verbose|debug|info|warning|error)\b"),
    },
    "python": {
        "module_logger": _v("logging.getLogger(__name__)", r"logging\.getLogger\s*\(\s*__name__"),
        "root_logging": _v("logging.info() on the root logger", r"\blogging\.(debug|info|warning|error|exception)\s*\("),
        "print": _v("print()", r"\bprint\s*\("),
    },
    "javascript": {
        "console": _v("console.*", r"\bconsole\.(log|info|warn|error|debug)\s*\("),
        "logger_lib": _v("logger library (winston/pino)", r"\b(winston|pino|logger)\.(info|warn|error|debug)\s*\("),
    },
}
LOGGING_VARIANTS["typescript"] = LOGGING_VARIANTS["javascript"]

TEST_FILE_RE = re.compile(r"(Test[s]?|Spec)\.(swift|m|mm)$|^test_\w+\.py$|\w+_test\.py$|\.(test|spec)\.[jt]sx?$")
TEST_CONTENT_RE = re.compile(r"XCTestCase|XCTest|Quick|Nimble")
TEST_MAIN_RE = re.compile(r"XCTestCase|XCTest|Quick|Nimble|QuickSpec|KWSpec|test\w+.*\{|def test_\w+|\b(describe|it|test)\s*\(")

TESTING_VARIANTS = {
    "swift": {
        "xctest": _v("XCTest unit tests", r"class\s+\w+\s*:\s*XCTestCase"),
        "quick": _v("Quick/BDD specs", r"class\s+\w+\s*:\s*QuickSpec|describe\s*\("),
        "async_test": _v("async tests", r"func\s+test\w+\s*\(\s*\)\s*async"),
        "ui_test": _v("UI tests", r"class\s+\w+\s*:\s*XCUITestCase|XCUIApplication"),
    },
    "objectivec": {
        "xctest": _v("XCTest unit tests", r"XCTestCase|XCTAssert"),
        "kiwi": _v("Kiwi BDD specs", r"\bKWSpec\b|describe\s*\("),
        "ocmock": _v("OCMock mocks", r"\bOCMock|OCMClassMock|OCMProtocolMock"),
    },
    "python": {
        "pytest_class": _v("pytest test classes", r"^class\s+Test\w+", MULTI),
        "pytest_function": _v("pytest test functions", r"^def\s+test_\w+", MULTI),
        "unittest": _v("unittest.TestCase", r"unittest\.TestCase"),
    },
    "javascript": {
        "jest_describe": _v("describe/it blocks", r"\bdescribe\s*\("),
        "test_fn": _v("test() functions", r"\btest\s*\("),
    },
}
TESTING_VARIANTS["typescript"] = TESTING_VARIANTS["javascript"]


# ─── event-and-data-flow ─────────────────────────────────────

def call_chain_patterns(lang: str) -> dict[str, PatternDefinition]:
    if lang == "objectivec":
        return {
            "delegate": _p("delegate", "Delegate", r"\b(delegate\b|Delegate\b|<\w+Delegate>|setDelegate:|\.delegate\s*=)"),
            "notification": _p("notification", "Notification",
                               r"\b(NSNotificationCenter|addObserver:|removeObserver:|postNotificationName:|NSNotification\b|\[\[NSNotificationCenter)"),
            "callback": _p("callback", "Block callback",
                           r"\b(completion[Hh]andler|completionBlock|success[Bb]lock|failure[Bb]lock|callback\b|\^\s*void|\^\s*\(|typedef\s+void\s*\(\^)"),
            "target_action": _p("target_action", "Target-Action", r"\b(addTarget:|@selector\(|performSelector|action:@selector|SEL\s)"),
        }
    if lang == "swift":
        return {
            "delegate": _p("delegate", "Delegate", r"\b(delegate\b|Delegate\b|\.delegate\s*=|protocol\s+\w+Delegate)"),
            "notification": _p("notification", "Notification", r"\b(NotificationCenter|\.post\(|\.addObserver|Notification\.Name)"),
            "reactive": _p("reactive", "Reactive (Combine/Rx)",
                           r"\b(Publisher|Subscriber|\.sink\s*\{|\.subscribe|Combine|RxSwift|AnyPublisher|eraseToAnyPublisher)"),
            "callback": _p("callback", "Callback / closure", r"\b(completion\s*:|handler\s*:|callback\s*:|escaping\s|@escaping)"),
        }
    if lang in ("javascript", "typescript"):
        return {
            "eventEmitter": _p("eventEmitter", "EventEmitter",
                               r"(\.on\(|\.emit\(|\.addEventListener\(|\.removeEventListener|\bEventEmitter|\bEventTarget)"),
            "callback": _p("callback", "Callback / Promise", r"(\.then\(|\.catch\(|\bcallback\s*[:(]|\.subscribe\(|\bnew\s+Promise)"),
            "observable": _p("observable", "Reactive (RxJS)",
                             r"\b(Observable|Subject|BehaviorSubject|pipe\(|switchMap|mergeMap|combineLatest)"),
        }
    return {
        "delegate": _p("delegate", "Delegate", r"\b(delegate|Delegate|listener|Listener|handler|Handler|callback|Callback)\b"),
        "notification": _p("notification", "Events / notifications",
                           r"\b(notify|Notification|event|Event|emit|signal|Signal|publish|subscribe)\b"),
    }


def data_flow_patterns(lang: str) -> dict[str, PatternDefinition]:
    if lang == "objectivec":
        return {
            "kvo": _p("kvo", "KVO",
                      r"\b(addObserver:.*forKeyPath|observeValueForKeyPath|removeObserver:.*forKeyPath|NSKeyValueObservingOptionNew)"),
            "property": _p("property", "Property declarations", r"^\s*@property\s*\(", flags=MULTI),
            "persistence": _p("persistence", "Persistence",
                              r"\b(NSUserDefaults|NSCoding|NSCoreDataStack|NSManagedObject|NSFetchRequest|CoreData\b|sqlite|\bRealm\b|\bFMDB\b)"),
            "singleton": _p("singleton", "Singleton",
                            r"\b(sharedInstance|shared\b|defaultManager|dispatch_once|static\s+\w+\s*\*\s*_instance)"),
        }
    if lang == "swift":
        return {
            "swiftui": _p("swiftui", "SwiftUI state",
                          r"(@Published|@State|@Binding|@Observable|@Environment|@ObservedObject|@StateObject|@EnvironmentObject)\b"),
            "combine": _p("combine", "Combine subjects",
                          r"\b(CurrentValueSubject|PassthroughSubject|AnyPublisher|Just\(|Future\(|\.assign\(to:)"),
            "kvo": _p("kvo", "KVO / property observers", r"\b(willSet|didSet|observe\(|@objc\s+dynamic)"),
        }
    if lang in ("javascript", "typescript"):
        return {
            "stateManagement": _p("stateManagement", "State management",
                                  r"\b(useState|useReducer|createStore|createSlice|atom\(|ref\(|reactive\(|writable\(|signal\()"),
            "dataBinding": _p("dataBinding", "Data binding",
                              r"\b(useEffect|useMemo|computed|watch\(|subscribe|mobx|observable)"),
        }
    if lang == "python":
        return {
            "dataclass": _p("dataclass", "Data models", r"(@dataclass|\bBaseModel|\bpydantic|@property|__init__\s*\(self)"),
            "stateManagement": _p("stateManagement", "State management",
                                  r"\b(signal|slot|@receiver|django\.dispatch|celery|redis|queue\.Queue)"),
        }
    return {
        "stateManagement": _p("stateManagement", "State / data management",
                              r"\b(state|State|store|Store|model|Model|repository|Repository|cache|Cache)\b"),
    }


EVENT_FLOW_VARIANTS: dict[str, dict[str, dict[str, VariantDefinition]]] = {
    "notification": {
        "objectivec": {
            "selector_add": _v("addObserver:selector: registration", r"addObserver:.*selector:"),
            "block_add": _v("addObserverForName:usingBlock:", r"addObserverForName:.*usingBlock:"),
            "post": _v("postNotificationName: sending", r"postNotificationName:"),
        },
        "swift": {
            "closure_add": _v("addObserver(forName:) closure", r"addObserver\s*\(\s*forName:"),
            "publisher": _v("NotificationCenter.publisher (Combine)", r"\.publisher\s*\(\s*for:"),
            "post": _v(".post sending", r"\.post\s*\("),
        },
    },
    "callback": {
        "objectivec": {
            "typedef_block": _v("typedef block declaration", r"typedef\s+void\s*\(\^"),
            "completion": _v("completionHandler parameter", r"completion[Hh]andler|completionBlock"),
            "inline_block": _v("inline ^{ } block", r"\^\s*\(|\^\s*\{"),
            "success_fail": _v("success/failure block pair", r"success\w*Block|failure\w*Block"),
        },
        "swift": {
            "escaping": _v("@escaping closure", r"@escaping"),
            "completion": _v("completion: handler", r"completion\s*:"),
            "result_cb": _v("Result<> callback", r"Result\s*<.*>\s*\)\s*->"),
        },
    },
    "target_action": {
        "_shared": {
            "add_target": _v("addTarget:action:forControlEvents:", r"addTarget:.*action:"),
            "selector": _v("@selector() reference", r"@selector\s*\("),
        },
    },
    "reactive": {
        "_shared": {
            "combine_sink": _v("Combine .sink", r"\.sink\s*\{"),
            "combine_assign": _v("Combine .assign", r"\.assign\s*\(to:"),
            "rx_subscribe": _v("RxSwift .subscribe", r"\.subscribe\s*\("),
            "rx_bind": _v("RxSwift .bind", r"\.bind\s*\(to:"),
        },
    },
    "kvo": {
        "objectivec": {
            "register": _v("addObserver:forKeyPath: registration", r"addObserver:.*forKeyPath:"),
            "callback": _v("observeValueForKeyPath: callback", r"observeValueForKeyPath:"),
            "remove_kvo": _v("removeObserver:forKeyPath: teardown", r"removeObserver:.*forKeyPath:"),
        },
        "swift": {
            "did_set": _v("didSet property observer", r"didSet\s*\{"),
            "will_set": _v("willSet property observer", r"willSet\s*\{"),
            "objc_dynamic": _v("@objc dynamic KVO", r"@objc\s+dynamic"),
        },
    },
    "property": {
        "_shared": {
            "nonatomic_strong": _v("nonatomic, strong", r"@property\s*\([^)]*nonatomic[^)]*strong"),
            "nonatomic_copy": _v("nonatomic, copy", r"@property\s*\([^)]*nonatomic[^)]*copy"),
            "nonatomic_weak": _v("nonatomic, weak", r"@property\s*\([^)]*nonatomic[^)]*weak"),
            "nonatomic_assign": _v("nonatomic, assign", r"@property\s*\([^)]*nonatomic[^)]*assign"),
            "readonly": _v("readonly", r"@property\s*\([^)]*readonly"),
        },
    },
    "persistence": {
        "objectivec": {
            "userdefaults": _v("NSUserDefaults", r"NSUserDefaults"),
            "coredata": _v("Core Data", r"NSManagedObject|NSFetchRequest|CoreData"),
            "realm": _v("Realm", r"\bRealm\b|RLMObject"),
            "fmdb": _v("FMDB / SQLite", r"\bFMDB\b|\bFMDatabase\b|sqlite"),
            "nscoding": _v("NSCoding archiving", r"NSCoding|NSKeyedArchiver"),
        },
    },
    "swiftui": {
        "_shared": {
            "state": _v("@State", r"@State\s+"),
            "published": _v("@Published", r"@Published\s+"),
            "binding": _v("@Binding", r"@Binding\s+"),
            "observed_object": _v("@ObservedObject", r"@ObservedObject\s+"),
            "state_object": _v("@StateObject", r"@StateObject\s+"),
            "environment": _v("@Environment", r"@Environment\s*\("),
            "environment_obj": _v("@EnvironmentObject", r"@EnvironmentObject\s+"),
        },
    },
    "combine": {
        "_shared": {
            "current_value": _v("CurrentValueSubject", r"CurrentValueSubject"),
            "passthrough": _v("PassthroughSubject", r"PassthroughSubject"),
            "future": _v("Future { }", r"Future\s*\{"),
            "just": _v("Just()", r"\bJust\s*\("),
        },
    },
    "eventEmitter": {
        "_shared": {
            "addEventListener": _v("addEventListener", r"\.addEventListener\s*\("),
            "on_event": _v(".on() handler", r"\.on\s*\("),
            "emit": _v(".emit() sending", r"\.emit\s*\("),
        },
    },
    "observable": {
        "_shared": {
            "rxjs_pipe": _v("RxJS pipe()", r"\.pipe\s*\("),
            "subscribe": _v(".subscribe()", r"\.subscribe\s*\("),
            "behavior_subj": _v("BehaviorSubject", r"BehaviorSubject"),
        },
    },
    "stateManagement": {
        "_shared": {
            "useState": _v("useState", r"\buseState\s*[(<]"),
            "useReducer": _v("useReducer", r"\buseReducer\s*\("),
            "redux": _v("Redux createStore/createSlice", r"createStore|createSlice"),
            "zustand": _v("Zustand/Jotai atom", r"\batom\s*\(|\bcreate\s*\("),
        },
    },
    "dataBinding": {
        "_shared": {
            "useEffect": _v("useEffect", r"\buseEffect\s*\("),
            "useMemo": _v("useMemo", r"\buseMemo\s*\("),
            "computed": _v("computed", r"\bcomputed\s*[({]"),
            "watch": _v("watch()", r"\bwatch\s*\("),
        },
    },
}


def event_flow_variants(key: str, lang: str) -> dict[str, VariantDefinition]:
    """Variant table for an event/data idiom; language-specific entries win over shared ones."""
    group = EVENT_FLOW_VARIANTS.get(key)
    if not group:
        return {}
    return group.get(lang) or group.get("_shared") or {}
