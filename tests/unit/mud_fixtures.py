"""Miniature component-library source tree shared across unit tests."""

from pathlib import Path

COMPONENTS_DIR = "src/MudBlazor/Components"
DOCS_DIR = "src/MudBlazor.Docs/Pages/Components"
ENUMS_DIR = "src/MudBlazor/Enums"

MUD_BUTTON_SOURCE = '''\
using Microsoft.AspNetCore.Components;
using Microsoft.AspNetCore.Components.Web;

namespace MudBlazor
{
    /// <summary>
    /// A clickable button.
    /// </summary>
    public partial class MudButton : MudBaseButton, IHandleEvent
    {
        /// <summary>
        /// The color of the button.
        /// </summary>
        [Parameter]
        [Category(CategoryTypes.Button.Appearance)]
        public Color Color { get; set; } = Color.Default;

        /// <summary>
        /// The button label.
        /// </summary>
        [Parameter, EditorRequired]
        public string Label { get; set; }

        /// <summary>
        /// Occurs when the button is clicked.
        /// </summary>
        [Parameter]
        public EventCallback<MouseEventArgs> OnClick { get; set; }

        [CascadingParameter]
        public MudForm Form { get; set; }

        private int _count;

        /// <summary>
        /// Focuses the button.
        /// </summary>
        public async Task FocusAsync()
        {
            await Task.Delay(1);
        }

        protected override void OnInitialized()
        {
            base.OnInitialized();
        }
    }
}
'''

MUD_BASE_BUTTON_SOURCE = '''\
namespace MudBlazor;

/// <summary>
/// Shared behaviour for button components.
/// </summary>
public abstract class MudBaseButton : MudComponentBase
{
    /// <summary>
    /// Disables the button.
    /// </summary>
    [Parameter]
    public bool Disabled { get; set; }
}
'''

MUD_ICON_BUTTON_SOURCE = '''\
namespace MudBlazor
{
    /// <summary>
    /// A button showing only an icon.
    /// </summary>
    public partial class MudIconButton : MudBaseButton
    {
        /// <summary>
        /// The icon to display.
        /// </summary>
        [Parameter]
        public string Icon { get; set; }
    }
}
'''

MUD_TEXT_FIELD_SOURCE = '''\
namespace MudBlazor
{
    /// <summary>
    /// A single-line text input.
    /// </summary>
    /// <remarks>
    /// Supports <see cref="Adornment"/> icons and masking.
    /// </remarks>
    public partial class MudTextField<T> : MudDebouncedInput<T>
    {
        /// <summary>
        /// The label shown above the input.
        /// </summary>
        [Parameter]
        public string Label { get; set; }

        /// <summary>
        /// Occurs when the text changes.
        /// </summary>
        [Parameter]
        public EventCallback<string> TextChanged { get; set; }

        /// <summary>
        /// Selects a range of text.
        /// </summary>
        /// <param name="start">The first character.</param>
        /// <param name="end">One past the last character.</param>
        public Task SelectRangeAsync(
            int start,
            int end)
        {
            return Task.CompletedTask;
        }
    }
}
'''

MUD_CARD_SOURCE = '''\
namespace MudBlazor
{
    /// <summary>
    /// Holds content and action buttons about a single subject.
    /// </summary>
    public partial class MudCard : MudComponentBase
    {
        [Parameter]
        public int Elevation { get; set; } = 1;
    }
}
'''

MUD_OLD_BOX_SOURCE = '''\
namespace MudBlazor
{
    /// <summary>
    /// A legacy container.
    /// </summary>
    [Obsolete("Use MudPaper instead")]
    public class MudOldBox : MudComponentBase
    {
    }
}
'''

MUD_INTERNAL_SOURCE = '''\
namespace MudBlazor.Internal
{
    public class MudInputAdornment : MudComponentBase
    {
    }
}
'''

VARIANT_ENUM_SOURCE = '''\
using System.ComponentModel;

namespace MudBlazor
{
    /// <summary>
    /// The visual style of a component.
    /// </summary>
    public enum Variant
    {
        /// <summary>
        /// Text only.
        /// </summary>
        [Description("text")]
        Text,
        [Description("filled")]
        Filled = 2,
        Outlined
    }
}
'''

BUTTON_PAGE_SOURCE = '''\
@page "/components/button"

<DocsPage>
    <DocsPageHeader Title="Button" SubTitle="Buttons let users take actions." />
    <DocsPageContent>
        <DocsPageSection>
            <SectionHeader Title="Basic usage">
                <Description>Use <CodeInline>Variant</CodeInline> to change the look.</Description>
            </SectionHeader>
            <SectionContent Code="@nameof(ButtonSimpleExample)">
                <ButtonSimpleExample />
            </SectionContent>
        </DocsPageSection>
        <DocsPageSection>
            <MudText>A section without a heading.</MudText>
        </DocsPageSection>
        <MudAlert Severity="Severity.Info">Place buttons inside a <MudLink Href="/components/card">card</MudLink> for grouping.</MudAlert>
        <MudText>See also <MudLink Href="/components/iconbutton">Icon Button</MudLink> and <a href="/components/card#api">cards</a>.</MudText>
        <MudLink Href="/components/button">this page</MudLink>
    </DocsPageContent>
</DocsPage>
'''

TEXT_FIELD_PAGE_SOURCE = '''\
<DocsPage>
    <DocsPageHeader Title="Text Field" SubTitle="Lets users enter and edit text." />
    <DocsPageContent>
        <MudText>Submit with a <MudLink Href="/components/button?tab=api">button</MudLink>.</MudText>
    </DocsPageContent>
</DocsPage>
'''

BUTTON_SIMPLE_EXAMPLE = '''\
@namespace MudBlazor.Docs.Examples

@* Filled and outlined buttons *@
<MudButton Variant="Variant.Filled" Color="Color.Primary" OnClick="Increment">Click me</MudButton>
<MudText>@_count</MudText>

@code {
    private int _count;

    private void Increment() => _count++;
}
'''

BUTTON_ICON_EXAMPLE = '''\
<MudButton StartIcon="@Icons.Material.Filled.Delete" Size="Size.Small">Delete</MudButton>
'''


def write_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def build_source_tree(root: Path) -> Path:
    """Lay out a miniature component library under *root*."""
    components = COMPONENTS_DIR
    write_file(root, f"{components}/Button/MudButton.razor.cs", MUD_BUTTON_SOURCE)
    write_file(root, f"{components}/Button/MudButton.razor", "<button>@ChildContent</button>\n")
    write_file(root, f"{components}/Button/MudBaseButton.cs", MUD_BASE_BUTTON_SOURCE)
    write_file(root, f"{components}/IconButton/MudIconButton.razor.cs", MUD_ICON_BUTTON_SOURCE)
    write_file(root, f"{components}/TextField/MudTextField.razor.cs", MUD_TEXT_FIELD_SOURCE)
    write_file(root, f"{components}/Card/MudCard.razor.cs", MUD_CARD_SOURCE)
    write_file(root, f"{components}/OldBox/MudOldBox.cs", MUD_OLD_BOX_SOURCE)
    write_file(root, f"{components}/Internal/MudInputAdornment.razor.cs", MUD_INTERNAL_SOURCE)

    write_file(root, f"{ENUMS_DIR}/Variant.cs", VARIANT_ENUM_SOURCE)

    write_file(root, f"{DOCS_DIR}/Button/ButtonPage.razor", BUTTON_PAGE_SOURCE)
    write_file(root, f"{DOCS_DIR}/Button/Examples/ButtonSimpleExample.razor", BUTTON_SIMPLE_EXAMPLE)
    write_file(root, f"{DOCS_DIR}/Button/Examples/ButtonIconExample.razor", BUTTON_ICON_EXAMPLE)
    write_file(root, f"{DOCS_DIR}/TextField/TextFieldPage.razor", TEXT_FIELD_PAGE_SOURCE)
    return root


