"""Shared fixtures for codelore tests."""

import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from codelore.cache import PipelineCache
from codelore.models import Candidate, ProjectSnapshot, SourceFile


def make_file(path: str, content: str) -> SourceFile:
    return SourceFile(path=path, content=content)


OBJC_MANAGER_M = """\
#import "XYNetworkManager.h"

@implementation XYNetworkManager

+ (instancetype)sharedInstance {
    static XYNetworkManager *manager = nil;
    static dispatch_once_t onceToken;
    dispatch_once(&onceToken, ^{
        manager = [[self alloc] init];
    });
    return manager;
}

- (void)viewDidLoad {
    [[NSNotificationCenter defaultCenter] addObserver:self selector:@selector(handleLogin:) name:XYUserDidLoginNotification object:nil];
}

- (void)handleLogin:(NSNotification *)note {
    // TODO: refresh the token cache
    self.view.layer.cornerRadius = kXYCornerRadius;
}

- (void)dealloc {
    [[NSNotificationCenter defaultCenter] removeObserver:self];
}

@end
"""

OBJC_CONSTANTS_H = """\
#ifndef XYConstants_h
#define XYConstants_h

#define kXYCornerRadius 8.0
#define kXYMainColor [UIColor colorWithRed:0.1 green:0.2 blue:0.3 alpha:1]
#define XYWeakify(o) __weak typeof(o) weak##o = o;
extern NSString *const XYUserDidLoginNotification;

#endif
"""

OBJC_CATEGORY_M = """\
#import "NSString+XYTrim.h"

@implementation NSString (XYTrim)

- (NSString *)xy_trimmed {
    return [self stringByTrimmingCharactersInSet:[NSCharacterSet whitespaceCharacterSet]];
}

@end
"""

OBJC_CALLER_M = """\
#import "XYProfileViewController.h"

@implementation XYProfileViewController

- (void)viewDidLoad {
    [super viewDidLoad];
    NSString *name = [self.nameField.text xy_trimmed];
    self.avatar.layer.cornerRadius = kXYCornerRadius;
    [[NSNotificationCenter defaultCenter] postNotificationName:XYUserDidLoginNotification object:nil];
}

@end
"""


@pytest.fixture
def objc_files() -> list[SourceFile]:
    return [
        make_file("App/XYNetworkManager.m", OBJC_MANAGER_M),
        make_file("App/XYConstants.h", OBJC_CONSTANTS_H),
        make_file("App/NSString+XYTrim.m", OBJC_CATEGORY_M),
        make_file("App/XYProfileViewController.m", OBJC_CALLER_M),
        make_file("Pods/AFNetworking/AFHTTPSessionManager.m", "+ (instancetype)sharedInstance { dispatch_once(&t, ^{}); }"),
    ]


@pytest.fixture
def objc_snapshot(objc_files) -> ProjectSnapshot:
    return ProjectSnapshot(
        name="demo",
        files=objc_files,
        target_file_map={"App": [f.relative_path for f in objc_files[:4]], "XYNetworking": []},
        dep_edges=[{"from": "App", "to": "XYNetworking"}, {"from": "App", "to": "Masonry"}],
    )


@pytest.fixture
def cache() -> PipelineCache:
    return PipelineCache()


@pytest.fixture
def candidates() -> list[Candidate]:
    """Twelve plain candidates whose summaries state evidence counts."""
    return [
        Candidate(
            title=f"[Bootstrap] code-pattern/pattern-{i}",
            sub_topic=f"pattern-{i}",
            summary=f"pattern {i}: {i + 1} files",
            document_body=f"# Pattern {i}\n\nbody {i}\n",
            sources=[f"src/file{i}.m"],
            tags=[f"tag{i}"],
        )
        for i in range(12)
    ]


@pytest.fixture
def fake_llm():
    """An LLM client whose ``chat`` is an AsyncMock returning JSON text."""

    class FakeLLM:
        def __init__(self):
            self.chat = AsyncMock(return_value=json.dumps({}))

    return FakeLLM()


@pytest_asyncio.fixture
async def no_sleep():
    """Patch asyncio.sleep in the retry wrapper so backoff does not slow tests down."""
    with patch("codelore.llm.asyncio.sleep", new_callable=AsyncMock) as mock:
        yield mock
