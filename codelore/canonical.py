"""Reference snippets and full-chain completeness checks for common idioms.

``BASIC_USAGE`` is keyed ``lang:pattern:variant`` and shows the textbook form of
one variant; ``{PREFIX}`` is replaced with the project's class prefix.
``CANONICAL_EXAMPLES`` is keyed ``lang:pattern`` and shows every step of a
multi-step idiom, used when ``check_completeness`` reports missing steps.
"""

import re
from collections.abc import Iterable

from pydantic import BaseModel

from codelore.config import settings
from codelore.models import SourceFile


class Snippet(BaseModel):
    label: str
    code: list[str]


def _s(label: str, code: str) -> Snippet:
    return Snippet(label=label, code=code.strip("\n").split("\n"))


BASIC_USAGE: dict[str, Snippet] = {
    # ObjC code patterns
    "objectivec:singleton:dispatch_once": _s("dispatch_once singleton", """
+ (instancetype)sharedInstance {
    static id shared = nil;
    static dispatch_once_t onceToken;
    dispatch_once(&onceToken, ^{
        shared = [[self alloc] init];
    });
    return shared;
}
"""),
    "objectivec:singleton:static_lazy": _s("static variable singleton", """
+ (instancetype)sharedInstance {
    static {PREFIX}Manager *_sharedInstance = nil;
    if (!_sharedInstance) {
        _sharedInstance = [[{PREFIX}Manager alloc] init];
    }
    return _sharedInstance;
}
"""),
    "objectivec:protocol-delegate:responds_check": _s("respondsToSelector guarded call", """
@protocol {PREFIX}UploaderDelegate <NSObject>
@optional
- (void)uploaderDidFinish:(id)result;
@end

if ([self.delegate respondsToSelector:@selector(uploaderDidFinish:)]) {
    [self.delegate uploaderDidFinish:result];
}
"""),
    "objectivec:protocol-delegate:direct_call": _s("direct delegate call", """
@protocol {PREFIX}CardViewDelegate <NSObject>
- (void)cardViewDidTap:({PREFIX}CardView *)cardView;
@end

@property (nonatomic, weak) id<{PREFIX}CardViewDelegate> delegate;

[self.delegate cardViewDidTap:self];
"""),
    "objectivec:category:named": _s("named category", """
// NSString+{PREFIX}Trim.h
@interface NSString ({PREFIX}Trim)
- (NSString *){PREFIX}_trimmed;
@end
"""),
    "objectivec:factory:class_method": _s("class factory method", """
+ (instancetype)cellWithStyle:({PREFIX}CellStyle)style {
    {PREFIX}Cell *cell = [[self alloc] init];
    cell.style = style;
    return cell;
}
"""),
    "objectivec:factory:init_with": _s("designated initWith...", """
- (instancetype)initWithTitle:(NSString *)title {
    self = [super init];
    if (self) {
        _title = [title copy];
    }
    return self;
}
"""),
    "objectivec:observer:notif_selector": _s("notification + selector", """
[[NSNotificationCenter defaultCenter] addObserver:self
                                         selector:@selector(sessionDidExpire:)
                                             name:{PREFIX}SessionDidExpireNotification
                                           object:nil];
"""),
    "objectivec:observer:notif_block": _s("notification + block", """
__weak typeof(self) weakSelf = self;
self.token = [[NSNotificationCenter defaultCenter] addObserverForName:{PREFIX}SessionDidExpireNotification
                                                               object:nil
                                                                queue:[NSOperationQueue mainQueue]
                                                           usingBlock:^(NSNotification *note) {
    [weakSelf reloadSession];
}];
"""),
    "objectivec:builder:method_chain": _s("chained builder", """
- (instancetype)withTimeout:(NSTimeInterval)timeout {
    _timeout = timeout;
    return self;
}
"""),
    # Swift code patterns
    "swift:singleton:static_let": _s("static let shared", """
final class {PREFIX}Cache {
    static let shared = {PREFIX}Cache()
    private init() {}
}
"""),
    "swift:singleton:private_init": _s("private init guard", """
final class {PREFIX}Session {
    static let shared = {PREFIX}Session()
    private init() {}
}
"""),
    "swift:protocol-delegate:weak_delegate": _s("weak delegate", """
protocol {PREFIX}PickerDelegate: AnyObject {
    func picker(_ picker: {PREFIX}Picker, didSelect index: Int)
}

weak var delegate: {PREFIX}PickerDelegate?
"""),
    "swift:protocol-delegate:optional_chain": _s("optional chaining call", """
delegate?.picker(self, didSelect: index)
"""),
    "swift:factory:convenience_init": _s("convenience init", """
convenience init(title: String) {
    self.init(frame: .zero)
    titleLabel.text = title
}
"""),
    "swift:factory:static_func": _s("static factory", """
static func make(with config: Config) -> Self {
    let instance = Self()
    instance.apply(config)
    return instance
}
"""),
    "swift:observer:notif_closure": _s("NotificationCenter closure", """
token = NotificationCenter.default.addObserver(forName: .sessionDidExpire, object: nil, queue: .main) { [weak self] _ in
    self?.reloadSession()
}
"""),
    "swift:observer:published": _s("@Published property", """
final class {PREFIX}ViewModel: ObservableObject {
    @Published var items: [Item] = []
}
"""),
    # Best practice
    "objectivec:errorHandling:nserror_out": _s("NSError out-parameter", """
- (BOOL)saveDocument:(NSError **)error {
    if (![self.data writeToURL:self.url options:NSDataWritingAtomic error:error]) {
        return NO;
    }
    return YES;
}
"""),
    "objectivec:concurrency:dispatch_main": _s("hop back to the main queue", """
dispatch_async(dispatch_get_main_queue(), ^{
    [self.tableView reloadData];
});
"""),
    "objectivec:concurrency:dispatch_global": _s("background work on a global queue", """
dispatch_async(dispatch_get_global_queue(DISPATCH_QUEUE_PRIORITY_DEFAULT, 0), ^{
    NSData *data = [self loadFromDisk];
    dispatch_async(dispatch_get_main_queue(), ^{
        [self render:data];
    });
});
"""),
    "objectivec:concurrency:dispatch_group": _s("dispatch_group fan-in", """
dispatch_group_t group = dispatch_group_create();
dispatch_group_enter(group);
[self fetchProfile:^{ dispatch_group_leave(group); }];
dispatch_group_notify(group, dispatch_get_main_queue(), ^{
    [self reload];
});
"""),
    "objectivec:memoryMgmt:weak_strong": _s("weak/strong self", """
__weak typeof(self) weakSelf = self;
[self.api fetch:^(id result) {
    __strong typeof(weakSelf) strongSelf = weakSelf;
    if (!strongSelf) return;
    [strongSelf apply:result];
}];
"""),
    "objectivec:memoryMgmt:dealloc_cleanup": _s("dealloc cleanup", """
- (void)dealloc {
    [[NSNotificationCenter defaultCenter] removeObserver:self];
    [_timer invalidate];
}
"""),
    "swift:errorHandling:do_try_catch": _s("do / try / catch", """
do {
    let data = try Data(contentsOf: url)
    try process(data)
} catch {
    logger.error("Failed to load: \\(error)")
}
"""),
    "swift:errorHandling:result_type": _s("Result callback", """
func load(completion: @escaping (Result<User, Error>) -> Void) {
    completion(.success(user))
}
"""),
    "swift:concurrency:async_await": _s("async / await", """
func loadProfile() async throws -> Profile {
    let data = try await client.get("/profile")
    return try decoder.decode(Profile.self, from: data)
}
"""),
    "swift:concurrency:task_block": _s("Task from synchronous code", """
Task { [weak self] in
    await self?.refresh()
}
"""),
    "swift:concurrency:dispatch_main": _s("DispatchQueue.main", """
DispatchQueue.main.async {
    self.tableView.reloadData()
}
"""),
    "swift:memoryMgmt:guard_self": _s("[weak self] + guard", """
service.fetch { [weak self] result in
    guard let self = self else { return }
    self.apply(result)
}
"""),
    "swift:memoryMgmt:weak_self": _s("[weak self] capture", """
service.fetch { [weak self] result in
    self?.apply(result)
}
"""),
    # Event / data flow
    "objectivec:notification:selector_add": _s("register with selector", """
[[NSNotificationCenter defaultCenter] addObserver:self
                                         selector:@selector(handleLogin:)
                                             name:{PREFIX}UserDidLoginNotification
                                           object:nil];
"""),
    "objectivec:notification:post": _s("post a notification", """
[[NSNotificationCenter defaultCenter] postNotificationName:{PREFIX}UserDidLoginNotification
                                                    object:self
                                                  userInfo:@{@"userId": userId}];
"""),
    "objectivec:callback:typedef_block": _s("typedef'd completion block", """
typedef void (^{PREFIX}FetchCompletion)(NSArray *items, NSError *error);

- (void)fetchItems:({PREFIX}FetchCompletion)completion;
"""),
    "objectivec:callback:completion": _s("completionHandler parameter", """
- (void)loadWithCompletionHandler:(void (^)(BOOL success))completionHandler {
    if (completionHandler) {
        completionHandler(YES);
    }
}
"""),
    "objectivec:kvo:register": _s("register a KVO observer", """
[self.player addObserver:self forKeyPath:@"status" options:NSKeyValueObservingOptionNew context:nil];
"""),
    "objectivec:target_action:add_target": _s("addTarget:action:", """
[self.button addTarget:self action:@selector(didTapButton:) forControlEvents:UIControlEventTouchUpInside];
"""),
    "objectivec:persistence:userdefaults": _s("NSUserDefaults with a key constant", """
[[NSUserDefaults standardUserDefaults] setBool:YES forKey:{PREFIX}HasOnboardedKey];
"""),
    "swift:notification:closure_add": _s("register with a closure", """
observer = NotificationCenter.default.addObserver(forName: .userDidLogin, object: nil, queue: .main) { [weak self] note in
    self?.handleLogin(note)
}
"""),
    "swift:notification:post": _s("post a notification", """
NotificationCenter.default.post(name: .userDidLogin, object: self, userInfo: ["userId": userId])
"""),
    "swift:callback:escaping": _s("@escaping completion", """
func fetch(completion: @escaping (Result<[Item], Error>) -> Void) {
    session.dataTask(with: url) { data, _, error in
        completion(Self.decode(data, error))
    }.resume()
}
"""),
    "swift:kvo:did_set": _s("didSet observer", """
var isLoading = false {
    didSet { spinner.isHidden = !isLoading }
}
"""),
}


CANONICAL_EXAMPLES: dict[str, Snippet] = {
    "objectivec:notification": _s("NSNotification full chain (register, handle, remove, post)", """
// 1. register
[[NSNotificationCenter defaultCenter] addObserver:self
                                         selector:@selector(handleUserDidLogin:)
                                             name:UserDidLoginNotification
                                           object:nil];

// 2. handle
- (void)handleUserDidLogin:(NSNotification *)notification {
    [self refreshForUser:notification.userInfo[@"userId"]];
}

// 3. remove in dealloc
- (void)dealloc {
    [[NSNotificationCenter defaultCenter] removeObserver:self];
}

// 4. post
[[NSNotificationCenter defaultCenter] postNotificationName:UserDidLoginNotification
                                                    object:self
                                                  userInfo:@{@"userId": userId}];
"""),
    "objectivec:kvo": _s("KVO full chain (register, observe, remove)", """
// 1. register
[self.player addObserver:self forKeyPath:@"status" options:NSKeyValueObservingOptionNew context:nil];

// 2. observe
- (void)observeValueForKeyPath:(NSString *)keyPath ofObject:(id)object
                        change:(NSDictionary<NSKeyValueChangeKey, id> *)change context:(void *)context {
    if ([keyPath isEqualToString:@"status"]) {
        [self handleStatus:[change[NSKeyValueChangeNewKey] integerValue]];
    }
}

// 3. remove in dealloc
- (void)dealloc {
    [self.player removeObserver:self forKeyPath:@"status"];
}
"""),
    "objectivec:callback": _s("Block callback with a weak self capture", """
typedef void (^FetchCompletion)(NSData *data, NSError *error);

__weak typeof(self) weakSelf = self;
[self fetchWithCompletion:^(NSData *data, NSError *error) {
    __strong typeof(weakSelf) strongSelf = weakSelf;
    if (!strongSelf) return;
    [strongSelf render:data];
}];
"""),
    "objectivec:target_action": _s("Target-action (add target, implement action)", """
[button addTarget:self action:@selector(didTapSubmit:) forControlEvents:UIControlEventTouchUpInside];

- (void)didTapSubmit:(UIButton *)sender {
    [self submit];
}
"""),
    "swift:notification": _s("NotificationCenter full chain (register, post, remove)", """
extension Notification.Name {
    static let userDidLogin = Notification.Name("UserDidLogin")
}

// 1. register
token = NotificationCenter.default.addObserver(forName: .userDidLogin, object: nil, queue: .main) { [weak self] _ in
    self?.reload()
}

// 2. post
NotificationCenter.default.post(name: .userDidLogin, object: nil)

// 3. remove
deinit {
    if let token { NotificationCenter.default.removeObserver(token) }
}
"""),
    "swift:kvo": _s("Key-value observation with a retained token", """
observation = player.observe(\\.status, options: [.new]) { [weak self] _, change in
    self?.handle(change.newValue)
}
"""),
    "swift:callback": _s("Escaping closure with weak capture", """
func fetch(completion: @escaping (Result<Data, Error>) -> Void) { ... }

fetch { [weak self] result in
    guard let self else { return }
    self.apply(result)
}
"""),
    "swift:reactive": _s("Combine subscription stored in cancellables", """
viewModel.$items
    .receive(on: DispatchQueue.main)
    .sink { [weak self] items in self?.render(items) }
    .store(in: &cancellables)
"""),
}


def _missing(checks: list[tuple[str, bool]]) -> list[str] | None:
    missing = [label for label, present in checks if not present]
    return missing or None


def check_completeness(
    pattern_key: str,
    lang: str,
    matching_files: Iterable[SourceFile],
    *,
    file_limit: int | None = None,
) -> list[str] | None:
    """Return the ordered list of missing steps of a multi-step idiom, or None when complete.

    Looks at the full content of the first ``file_limit`` matching files, since
    the steps of an idiom usually live in different methods. Patterns without
    a known chain return None.
    """
    if file_limit is None:
        file_limit = settings.COMPLETENESS_FILE_LIMIT
    code = "\n".join(f.content for _, f in zip(range(file_limit), matching_files))

    def has(pattern: str) -> bool:
        return re.search(pattern, code) is not None

    if pattern_key == "notification":
        if lang == "objectivec":
            return _missing([
                ("register observer", has(r"addObserver:")),
                ("handler method", has(r"@selector\(\w+:\)") and has(r"\(void\)\s*\w+.*NSNotification")),
                ("post notification", has(r"postNotificationName:")),
                ("remove observer", has(r"removeObserver:")),
            ])
        if lang == "swift":
            return _missing([
                ("register observer", has(r"addObserver")),
                ("post notification", has(r"\.post\(")),
                ("remove observer / deinit", has(r"removeObserver") or has(r"deinit")),
            ])

    if pattern_key == "kvo":
        if lang == "objectivec":
            return _missing([
                ("register observer", has(r"addObserver:.*forKeyPath")),
                ("observeValueForKeyPath callback", has(r"observeValueForKeyPath:")),
                ("removeObserver", has(r"removeObserver:.*forKeyPath")),
            ])
        if lang == "swift":
            observes = has(r"\.observe\(") or has(r"didSet|willSet")
            handles = has(r"change\.newValue|oldValue") or has(r"didSet|willSet")
            return None if observes and handles else ["full observe + handle chain"]

    if pattern_key == "callback" and lang == "objectivec":
        return _missing([
            ("block definition", has(r"typedef\s+void\s*\(\^|completion[Hh]andler|Block\b")),
            ("weak self capture", has(r"weakSelf|__weak")),
        ])

    return None
