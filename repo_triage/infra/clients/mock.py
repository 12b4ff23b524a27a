"""Deterministic agents used with ``--mock`` and in tests. No network access."""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from repo_triage.domains.triage.comment import format_comment
from repo_triage.domains.triage.models import ChangeInput
from repo_triage.infra.clients.github import PullRequestReference
from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import CancellationError


logger = logging.getLogger(__name__)

SAMPLE_PR_TITLE = "feat: add user authentication module"
SAMPLE_PR_BODY = "This PR adds JWT-based authentication with login and signup endpoints."
SAMPLE_FILES_CHANGED = (
    "src/auth/login.cs",
    "src/auth/signup.cs",
    "tests/auth/loginTests.cs",
)

SAMPLE_DIFF = """\
diff --git a/src/auth/login.cs b/src/auth/login.cs
new file mode 100644
--- /dev/null
+++ b/src/auth/login.cs
@@ -0,0 +1,31 @@
+using System.Threading.Tasks;
+
+namespace MyApp.Auth;
+
+public class LoginHandler
+{
+    private readonly IUserRepository _userRepo;
+    private readonly IPasswordHasher _hasher;
+    private readonly ITokenService _tokenService;
+
+    public LoginHandler(IUserRepository userRepo, IPasswordHasher hasher, ITokenService tokenService)
+    {
+        _userRepo = userRepo;
+        _hasher = hasher;
+        _tokenService = tokenService;
+    }
+
+    public async Task<AuthResult> HandleAsync(LoginRequest request)
+    {
+        var user = await _userRepo.FindByEmailAsync(request.Email);
+        if (user == null)
+            return AuthResult.Fail("User not found");
+
+        var valid = _hasher.Verify(request.Password, user.PasswordHash);
+        if (!valid)
+            return AuthResult.Fail("Invalid password");
+
+        var token = _tokenService.Generate(user);
+        return AuthResult.Ok(token);
+    }
+}
diff --git a/src/auth/signup.cs b/src/auth/signup.cs
new file mode 100644
--- /dev/null
+++ b/src/auth/signup.cs
@@ -0,0 +1,28 @@
+using System.Threading.Tasks;
+
+namespace MyApp.Auth;
+
+public class SignupHandler
+{
+    private readonly IUserRepository _userRepo;
+    private readonly IPasswordHasher _hasher;
+
+    public SignupHandler(IUserRepository userRepo, IPasswordHasher hasher)
+    {
+        _userRepo = userRepo;
+        _hasher = hasher;
+    }
+
+    public async Task<SignupResult> HandleAsync(SignupRequest request)
+    {
+        var existing = await _userRepo.FindByEmailAsync(request.Email);
+        if (existing != null)
+            return SignupResult.Fail("Email already registered");
+
+        var hash = _hasher.Hash(request.Password);
+        var user = new User(request.Email, hash);
+        await _userRepo.SaveAsync(user);
+
+        return SignupResult.Ok(user.Id);
+    }
+}
diff --git a/tests/auth/loginTests.cs b/tests/auth/loginTests.cs
new file mode 100644
--- /dev/null
+++ b/tests/auth/loginTests.cs
@@ -0,0 +1,20 @@
+using Xunit;
+
+namespace MyApp.Auth.Tests;
+
+public class LoginTests
+{
+    [Fact]
+    public async Task ValidCredentials_ReturnsToken()
+    {
+        // Arrange
+        var handler = CreateHandler(existingUser: true, validPassword: true);
+
+        // Act
+        var result = await handler.HandleAsync(new LoginRequest("test@example.com", "pass123"));
+
+        // Assert
+        Assert.True(result.Success);
+        Assert.NotNull(result.Token);
+    }
+}"""

MOCK_SUMMARY = """\
- Adds JWT-based authentication with login and signup endpoints
- Introduces password hashing and token generation
- Includes basic error handling for invalid credentials"""

MOCK_RISKS = """\
- No rate limiting on login endpoint (brute-force risk)
- Password validation errors may leak user existence
- Token expiration policy not visible in the diff"""

MOCK_CHECKLIST = """\
- Verify password hashing uses a strong algorithm (bcrypt/argon2)
- Confirm JWT tokens have a reasonable expiration
- Check that login errors do not leak user existence
- Ensure unit tests cover invalid-credential paths
- Review token generation for secure random key usage"""

MOCK_FALLBACK = "No specific analysis available."


def mock_response(system_prompt: str) -> str:
    prompt = system_prompt.lower()
    if "summarize" in prompt:
        return MOCK_SUMMARY
    if "risk" in prompt:
        return MOCK_RISKS
    if "checklist" in prompt:
        return MOCK_CHECKLIST
    return MOCK_FALLBACK


class MockSourceControlAgent:
    def fetch_pull_request(
        self,
        reference: PullRequestReference,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> ChangeInput:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        logger.info("Returning sample pull request for mock mode: ref=%s", reference)
        return ChangeInput(
            title=SAMPLE_PR_TITLE,
            body=SAMPLE_PR_BODY,
            diff_text=SAMPLE_DIFF,
            files_changed=SAMPLE_FILES_CHANGED,
        )

    def get_diff(self, change: ChangeInput, *, cancel_token: CancellationToken) -> str:
        cancel_token.raise_if_cancelled()
        return change.diff_text

    def draft_comment(
        self,
        summary: str,
        risks: Sequence[str],
        checklist: Sequence[str],
        title: str,
        *,
        cancel_token: CancellationToken,
    ) -> str:
        cancel_token.raise_if_cancelled()
        return format_comment(summary, risks, checklist, title)


class MockInferenceAgent:
    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def model_name(self) -> str:
        return "mock"

    @property
    def endpoint(self) -> str:
        return "mock://local"

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> str:
        cancel_token.raise_if_cancelled()
        return mock_response(system_prompt)

    def complete_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> Iterator[str]:
        for line in mock_response(system_prompt).splitlines(keepends=True):
            if cancel_token.cancelled:
                raise CancellationError("Triage run was cancelled during streaming")
            yield line
